"""Common test fixtures."""

import shutil
import subprocess
from datetime import datetime, timedelta, timezone

import pytest

from topologist.core.categorizer import FileCategorizer
from topologist.core.metadata import MetadataStore
from topologist.core.models import CategorizedFile, CategoryAnalysis, FileCategory


class FakeClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self):
        self.now = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path, clock):
    """MetadataStore rooted in a temporary project directory."""
    return MetadataStore(tmp_path, state_dir_name=".topologist", cache_ttl=timedelta(hours=1), clock=clock)


@pytest.fixture
def categorized_file():
    """Fixture for creating CategorizedFile instances."""
    def _create(path: str, category: FileCategory = FileCategory.SOURCE_CODE, size: int = 300):
        return CategorizedFile(
            path=path,
            category=category,
            estimated_size=size,
            priority=category.weight,
            grouping_hint="test",
        )
    return _create


@pytest.fixture
def make_analysis():
    """Fixture for building a CategoryAnalysis from CategorizedFile instances."""
    def _create(files: list[CategorizedFile]) -> CategoryAnalysis:
        counts: dict[FileCategory, int] = {}
        for file in files:
            counts[file.category] = counts.get(file.category, 0) + 1
        return CategoryAnalysis(
            files=files,
            category_counts=counts,
            estimated_total_size=sum(f.estimated_size for f in files),
            suggested_phases=FileCategorizer.calculate_suggested_phases(files),
        )
    return _create


class GitRepo:
    """Real repository in a temporary directory."""

    def __init__(self, path):
        self.path = path

    def git(self, *args: str) -> str:
        result = subprocess.run(["git", *args], cwd=self.path, check=True, capture_output=True, text=True)
        return result.stdout

    def write(self, relative: str, content: str = "content\n") -> None:
        target = self.path / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)

    def commit_all(self, message: str = "initial") -> None:
        self.git("add", "-A")
        self.git("commit", "-q", "-m", message)

    def commit_count(self) -> int:
        return int(self.git("rev-list", "--count", "HEAD").strip())


@pytest.fixture
def git_repo(tmp_path):
    """An empty git repository with a committer identity configured."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo = GitRepo(tmp_path)
    repo.git("init", "-q")
    repo.git("config", "user.email", "dev@example.com")
    repo.git("config", "user.name", "Test Developer")
    repo.git("config", "commit.gpgsign", "false")
    return repo
