"""Commit message generation for planned phases."""

from pathlib import PurePosixPath

from .models import CategorizedFile, FileCategory

PACKAGE_MANIFESTS = {
    "package.json",
    "Cargo.toml",
    "requirements.txt",
    "pyproject.toml",
    "composer.json",
    "go.mod",
}

LANGUAGE_BY_EXTENSION = {
    ".rs": "Rust",
    ".js": "JavaScript/TypeScript",
    ".ts": "JavaScript/TypeScript",
    ".py": "Python",
    ".go": "Go",
}

CATEGORY_PREFIXES = {
    FileCategory.CONFIGURATION: ("config:", "configuration file"),
    FileCategory.DOCUMENTATION: ("docs:", "documentation file"),
    FileCategory.SOURCE_CODE: ("feat:", "source code file"),
    FileCategory.DEVELOPMENT_TOOLS: ("tools:", "development tool file"),
    FileCategory.MEDIA_ASSETS: ("assets:", "media asset file"),
    FileCategory.BUILD_ARTIFACTS: ("build:", "build artifact"),
    FileCategory.UNKNOWN: ("add:", "miscellaneous file"),
}


def pluralize(count: int, noun: str) -> str:
    """Return ``count`` followed by ``noun``, pluralized with a trailing s."""
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def _file_name(path: str) -> str:
    return PurePosixPath(path).name


def has_package_manifest(files: list[CategorizedFile]) -> bool:
    return any(_file_name(f.path) in PACKAGE_MANIFESTS for f in files)


def has_container_files(files: list[CategorizedFile]) -> bool:
    return any("docker" in f.path.lower() or "containerfile" in f.path.lower() for f in files)


def detect_language(files: list[CategorizedFile]) -> str | None:
    """Return the language shared by every file, or None when mixed or unrecognized."""
    languages = {LANGUAGE_BY_EXTENSION.get(PurePosixPath(f.path).suffix) for f in files}
    if len(languages) == 1:
        return languages.pop()
    return None


def generate_commit_message(files: list[CategorizedFile], category: FileCategory) -> str:
    """
    Build a conventional-style commit message for a phase.

    Args:
        files: Files in the phase
        category: The phase's dominant category

    Returns:
        Single-line commit message such as ``docs: Add 2 documentation files``
    """
    count = len(files)

    if category == FileCategory.CONFIGURATION and has_package_manifest(files):
        return f"deps: Add {pluralize(count, 'dependency configuration file')}"

    if category in (FileCategory.CONFIGURATION, FileCategory.DEVELOPMENT_TOOLS) and has_container_files(files):
        return f"docker: Add {pluralize(count, 'containerization file')}"

    if category == FileCategory.DOCUMENTATION and any("readme" in f.path.lower() for f in files):
        return f"docs: Add {pluralize(count, 'core documentation file')}"

    if category == FileCategory.SOURCE_CODE:
        language = detect_language(files)
        if language:
            return f"feat: Add {pluralize(count, f'{language} source file')}"

    prefix, noun = CATEGORY_PREFIXES[category]
    return f"{prefix} Add {pluralize(count, noun)}"
