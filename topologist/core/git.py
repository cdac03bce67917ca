"""Git operations module."""

import hashlib
import logging
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from ..config.settings import settings
from .errors import GitError, GitTimeoutError, RepositoryError

logger = logging.getLogger(__name__)

_SUMMARY_PATTERNS = {
    "files_changed": re.compile(r"(\d+) files? changed"),
    "insertions": re.compile(r"(\d+) insertions?\(\+\)"),
    "deletions": re.compile(r"(\d+) deletions?\(-\)"),
}


@dataclass
class RepositoryStatus:
    """Changed paths in the working tree, split into untracked and modified."""

    untracked: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)

    @property
    def all_files(self) -> list[str]:
        return self.untracked + self.modified

    @property
    def fingerprint(self) -> str:
        """Stable hash of the bucketed paths, used as the analysis cache key."""
        digest = hashlib.sha256()
        for bucket, paths in (("??", self.untracked), ("M", self.modified)):
            for path in sorted(paths):
                digest.update(f"{bucket} {path}\n".encode("utf-8"))
        return digest.hexdigest()


@dataclass
class RepositoryStats:
    """Repository-wide counts."""

    total_files: int
    total_commits: int


@dataclass
class DiffStats:
    """Summary line of a stat-only diff."""

    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0


@dataclass
class ValidationResult:
    """Pre-commit check of a phase's files. Advisory only."""

    existing_files: list[str]
    missing_files: list[str]
    large_files: list[str]

    @property
    def is_valid(self) -> bool:
        return not self.missing_files


def parse_porcelain_status(output: str) -> RepositoryStatus:
    """
    Parse ``git status --porcelain -z`` output into untracked and modified buckets.

    Entries are NUL-separated and paths are never quoted. A renamed or copied
    entry is followed by an extra field holding its source path, which is
    skipped. Every non-blank status code other than ``??`` counts as modified,
    including added, deleted, renamed, copied and unmerged entries.
    """
    status = RepositoryStatus()
    entries = iter(output.split("\0"))

    for entry in entries:
        if len(entry) < 4:
            continue

        code = entry[:2]
        path = entry[3:]

        # Handle renamed and copied files
        if "R" in code or "C" in code:
            next(entries, None)

        # Skip ignored files
        if code == "!!" or not code.strip():
            continue

        if code == "??":
            status.untracked.append(path)
        else:
            status.modified.append(path)

    return status


def parse_diff_summary(output: str) -> DiffStats:
    """Parse the summary line of ``git show --stat``; missing clauses count as zero."""
    for line in output.splitlines():
        if "|" in line:
            continue

        matches = {name: pattern.search(line) for name, pattern in _SUMMARY_PATTERNS.items()}
        if not any(matches.values()):
            continue

        return DiffStats(**{name: int(m.group(1)) if m else 0 for name, m in matches.items()})

    return DiffStats()


class GitOperations:
    """Runs git commands against one working tree."""

    def __init__(self, repo_path: str | Path = ".", timeout: float | None = None):
        self.repo_path = Path(repo_path)
        self.timeout = timeout if timeout is not None else settings.git_timeout

    def _run(self, args: list[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a git command with a bounded wait."""
        cmd = ["git", *args]
        logger.debug("Running git command: %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=check,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise GitTimeoutError(f"git {args[0]} did not finish within {self.timeout:g}s") from e
        except FileNotFoundError as e:
            raise RepositoryError("git executable not found on PATH") from e

    def is_git_repository(self) -> bool:
        """Check whether the working directory is inside a git repository."""
        try:
            result = self._run(["rev-parse", "--git-dir"], check=False)
        except (RepositoryError, GitTimeoutError):
            return False
        return result.returncode == 0

    def get_repository_status(self) -> RepositoryStatus:
        """Get untracked and modified files in the working tree."""
        try:
            result = self._run(["status", "--porcelain", "-z", "--untracked-files=all"])
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr if e.stderr else str(e)
            raise RepositoryError(f"Not a git repository or git status failed: {error_msg}")

        return parse_porcelain_status(result.stdout)

    def is_untracked(self, file_path: str) -> bool:
        """Check whether a single path is untracked."""
        result = self._run(["ls-files", "--others", "--exclude-standard", "--", file_path], check=False)
        if result.returncode != 0:
            return False
        return bool(result.stdout.strip())

    def stage_files(self, files: list[str]) -> None:
        """Stage a list of files."""
        if not files:
            return

        try:
            result = self._run(["add", "--", *files])
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr if e.stderr else str(e)
            raise GitError(f"Failed to stage files: {error_msg}")

        if result.stderr:
            logger.warning("git add: %s", result.stderr.strip())

    def commit_staged_files(self, commit_message: str) -> str:
        """Commit the index and return the new commit hash."""
        full_message = f"{commit_message}\n\n{settings.commit_trailer}"
        try:
            self._run(["commit", "-m", full_message])
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr or e.stdout or str(e)
            raise GitError(f"Failed to commit: {error_msg}")

        return self.get_latest_commit_hash()

    def stage_and_commit_files(self, files: list[str], commit_message: str) -> str:
        """
        Stage files and commit them.

        Staging is not rolled back if the commit fails.

        Returns:
            Hash of the new commit
        """
        self.stage_files(files)
        return self.commit_staged_files(commit_message)

    def get_latest_commit_hash(self) -> str:
        try:
            result = self._run(["rev-parse", "HEAD"])
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr if e.stderr else str(e)
            raise GitError(f"Failed to get commit hash: {error_msg}")
        return result.stdout.strip()

    def get_diff_stats(self, commit_hash: str) -> DiffStats:
        """Get files changed, insertions and deletions for one commit."""
        try:
            result = self._run(["show", "--stat", "--format=", commit_hash])
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr if e.stderr else str(e)
            raise GitError(f"Failed to get diff stats for {commit_hash}: {error_msg}")

        return parse_diff_summary(result.stdout)

    def get_repository_stats(self) -> RepositoryStats:
        """Count tracked plus untracked files and commits reachable from HEAD."""
        files = self._run(["ls-files", "--cached", "--others", "--exclude-standard"], check=False)
        total_files = 0
        if files.returncode == 0:
            total_files = sum(1 for line in files.stdout.splitlines() if line.strip())

        commits = self._run(["rev-list", "--count", "HEAD"], check=False)
        total_commits = 0
        if commits.returncode == 0 and commits.stdout.strip().isdigit():
            total_commits = int(commits.stdout.strip())

        return RepositoryStats(total_files=total_files, total_commits=total_commits)

    def validate_files_for_commit(self, files: list[str]) -> ValidationResult:
        """Split files into existing and missing, flagging anything over the size threshold."""
        existing, missing, large = [], [], []

        for file in files:
            path = self.repo_path / file
            if not path.exists():
                missing.append(file)
                continue

            existing.append(file)
            if path.is_file() and path.stat().st_size > settings.large_file_threshold:
                large.append(file)

        return ValidationResult(existing_files=existing, missing_files=missing, large_files=large)
