"""File categorization engine for commit phase planning."""

import logging
from collections import Counter
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import PurePosixPath

from ..config.settings import settings
from .messages import generate_commit_message
from .models import CategorizedFile, CategoryAnalysis, CommitPhase, FileCategory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryRule:
    """Matches a path by file name glob or by directory prefix."""

    category: FileCategory
    name_patterns: tuple[str, ...] = ()
    directories: tuple[str, ...] = ()

    def matches(self, file_path: str) -> bool:
        name = PurePosixPath(file_path).name
        if any(fnmatchcase(name, pattern) for pattern in self.name_patterns):
            return True
        return any(
            file_path.startswith(f"{directory}/") or f"/{directory}/" in file_path
            for directory in self.directories
        )


# Evaluated top to bottom, first match wins. Build artifacts come first so
# that e.g. target/src/main.rs is never taken for source code.
CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        FileCategory.BUILD_ARTIFACTS,
        name_patterns=("*.min.*", "*.bundle.*", "*.o", "*.a", "*.so", "*.dylib", "*.exe"),
        directories=("target", "build", "dist", "out", "node_modules"),
    ),
    CategoryRule(
        FileCategory.CONFIGURATION,
        name_patterns=(
            "*.json", "*.yaml", "*.yml", "*.toml", "*.ini", "*.cfg", ".env*", "config*",
            "settings*", "Makefile*", "*.lock", "requirements.txt", "composer.json",
        ),
    ),
    CategoryRule(
        FileCategory.DOCUMENTATION,
        name_patterns=("*.md", "*.rst", "*.txt", "README*", "CHANGELOG*", "LICENSE*", "*.adoc", "*.tex"),
        directories=("docs", "documentation"),
    ),
    CategoryRule(
        FileCategory.DEVELOPMENT_TOOLS,
        name_patterns=("*.sh", "Dockerfile*", "*.template"),
        directories=("scripts", "tools", "bin", ".github", ".gitlab", "ci", "deploy"),
    ),
    CategoryRule(
        FileCategory.SOURCE_CODE,
        name_patterns=(
            "*.rs", "*.js", "*.ts", "*.py", "*.go", "*.java", "*.cpp", "*.c", "*.rb", "*.php",
            "*.bash", "*.zsh", "*.ps1", "*.sql", "*.html", "*.css", "*.scss",
        ),
        directories=("src", "lib", "app"),
    ),
    CategoryRule(
        FileCategory.MEDIA_ASSETS,
        name_patterns=(
            "*.png", "*.jpg", "*.jpeg", "*.gif", "*.svg", "*.ico", "*.mp4", "*.mov", "*.avi",
            "*.pdf", "*.ttf", "*.woff*",
        ),
        directories=("assets", "images", "media", "static"),
    ),
)

BASE_SIZES = {
    "md": 200,
    "txt": 200,
    "rst": 200,
    "json": 100,
    "yaml": 100,
    "yml": 100,
    "toml": 100,
    "rs": 300,
    "js": 300,
    "ts": 300,
    "py": 300,
    "go": 300,
    "sh": 150,
    "bash": 150,
    "lock": 500,
}
DEFAULT_BASE_SIZE = 100

CODE_GROUPS = {
    "rs": "rust-code",
    "js": "javascript",
    "ts": "javascript",
    "py": "python",
    "go": "golang",
    "java": "java",
    "cpp": "c-cpp",
    "c": "c-cpp",
    "html": "web-frontend",
    "css": "web-frontend",
    "scss": "web-frontend",
    "sh": "shell-scripts",
    "bash": "shell-scripts",
    "zsh": "shell-scripts",
}


def _extension(file_path: str) -> str:
    return PurePosixPath(file_path).suffix.lstrip(".")


def sequential_phases(files: list[CategorizedFile], max_phase_size: int) -> list[CommitPhase]:
    """
    Pack files into phases in a single greedy pass.

    A new phase starts whenever the category changes or the next file would
    push the running total past ``max_phase_size``. Phases never mix
    categories.

    Args:
        files: Categorized files, already in commit order
        max_phase_size: Upper bound on a phase's estimated size

    Returns:
        Phases numbered from 1
    """
    phases: list[CommitPhase] = []
    current: list[CategorizedFile] = []
    current_size = 0
    current_category: FileCategory | None = None

    def flush() -> None:
        phases.append(
            CommitPhase(
                phase_number=len(phases) + 1,
                files=list(current),
                category=current_category,
                estimated_size=current_size,
                commit_message=generate_commit_message(current, current_category),
            )
        )

    for file in files:
        if file.category != current_category or current_size + file.estimated_size > max_phase_size:
            if current:
                flush()
                current = []
                current_size = 0
            current_category = file.category

        current.append(file)
        current_size += file.estimated_size

    if current:
        flush()

    return phases


class FileCategorizer:
    """Classifies changed paths and builds the default commit plan."""

    def __init__(self, max_phase_size: int | None = None):
        self.max_phase_size = max_phase_size or settings.max_phase_size

    def analyze_files(self, file_paths: list[str]) -> CategoryAnalysis:
        """
        Categorize every path and summarize the result.

        Args:
            file_paths: Paths relative to the repository root

        Returns:
            CategoryAnalysis with files sorted by priority (highest first)
        """
        categorized = [self.categorize_file(path) for path in file_paths]
        categorized.sort(key=lambda f: (-f.priority, f.category.value))

        counts = Counter(f.category for f in categorized)
        total_size = sum(f.estimated_size for f in categorized)

        logger.debug("Categorized %d files into %d categories", len(categorized), len(counts))

        return CategoryAnalysis(
            files=categorized,
            category_counts=dict(counts),
            estimated_total_size=total_size,
            suggested_phases=self.calculate_suggested_phases(categorized),
        )

    def categorize_file(self, file_path: str) -> CategorizedFile:
        """Categorize a single path."""
        category = self.detect_category(file_path)
        extension = _extension(file_path)

        return CategorizedFile(
            path=file_path,
            category=category,
            estimated_size=self.estimate_file_size(file_path),
            priority=category.weight,
            grouping_hint=self.grouping_hint(file_path, category, extension),
        )

    @staticmethod
    def detect_category(file_path: str) -> FileCategory:
        for rule in CATEGORY_RULES:
            if rule.matches(file_path):
                return rule.category
        return FileCategory.UNKNOWN

    @staticmethod
    def estimate_file_size(file_path: str) -> int:
        """
        Estimate the size of a change from its path alone.

        A per-extension base scaled by ``1 + 0.2 * depth`` where depth is the
        number of slashes in the path.
        """
        base = BASE_SIZES.get(_extension(file_path), DEFAULT_BASE_SIZE)
        depth = file_path.count("/")
        return base * (5 + depth) // 5

    @staticmethod
    def grouping_hint(file_path: str, category: FileCategory, extension: str) -> str:
        if category == FileCategory.CONFIGURATION:
            if "package" in file_path or "requirements" in file_path:
                return "dependencies"
            if "docker" in file_path.lower():
                return "containerization"
            if ".env" in file_path:
                return "environment"
            return "configuration"
        if category == FileCategory.DOCUMENTATION:
            if "readme" in file_path.lower():
                return "core-docs"
            if "docs/" in file_path or "documentation/" in file_path:
                return "detailed-docs"
            return "documentation"
        if category == FileCategory.SOURCE_CODE:
            return CODE_GROUPS.get(extension, "source-code")
        if category == FileCategory.DEVELOPMENT_TOOLS:
            return "dev-tools"
        if category == FileCategory.MEDIA_ASSETS:
            return "media"
        if category == FileCategory.BUILD_ARTIFACTS:
            return "build-artifacts"
        return "misc"

    @staticmethod
    def calculate_suggested_phases(files: list[CategorizedFile]) -> int:
        if not files:
            return 0

        total_size = sum(f.estimated_size for f in files)
        unique_categories = len({f.category for f in files})

        size_based = max(total_size // 1000, 1)
        category_based = max(unique_categories, 1)
        return max(min(size_based, category_based), 2)

    def generate_commit_plan(self, analysis: CategoryAnalysis) -> list[CommitPhase]:
        """Build the default single-category, size-capped plan."""
        return sequential_phases(analysis.files, self.max_phase_size)
