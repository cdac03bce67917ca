"""Shared data model for categorization and commit planning."""

from dataclasses import dataclass, field
from enum import Enum


class FileCategory(Enum):
    """File-purpose classifications."""

    CONFIGURATION = "Configuration"
    DOCUMENTATION = "Documentation"
    SOURCE_CODE = "SourceCode"
    BUILD_ARTIFACTS = "BuildArtifacts"
    DEVELOPMENT_TOOLS = "DevelopmentTools"
    MEDIA_ASSETS = "MediaAssets"
    UNKNOWN = "Unknown"

    @property
    def weight(self) -> int:
        """Sort priority; higher is committed earlier."""
        return CATEGORY_WEIGHTS[self]


# Build artifacts rank lowest so they are always committed last.
CATEGORY_WEIGHTS: dict[FileCategory, int] = {
    FileCategory.CONFIGURATION: 9,
    FileCategory.DOCUMENTATION: 8,
    FileCategory.DEVELOPMENT_TOOLS: 7,
    FileCategory.SOURCE_CODE: 6,
    FileCategory.MEDIA_ASSETS: 5,
    FileCategory.UNKNOWN: 4,
    FileCategory.BUILD_ARTIFACTS: 1,
}


@dataclass
class CategorizedFile:
    """A changed path with its category and heuristic size."""

    path: str
    category: FileCategory
    estimated_size: int
    priority: int  # 1-10, higher = commit earlier
    grouping_hint: str


@dataclass
class CategoryAnalysis:
    """Result of one categorization pass over the changed files."""

    files: list[CategorizedFile]
    category_counts: dict[FileCategory, int]
    estimated_total_size: int
    suggested_phases: int

    @property
    def file_count(self) -> int:
        return len(self.files)


@dataclass
class CommitPhase:
    """One planned group of files destined for a single commit."""

    phase_number: int
    files: list[CategorizedFile]
    category: FileCategory
    estimated_size: int
    commit_message: str

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]


@dataclass
class EstimatedDuration:
    """Advisory effort estimate for a plan."""

    total_phases: int
    estimated_minutes: int
    complexity_score: int  # 0-10


class CommitStrategy(Enum):
    """Algorithms that turn a categorized file set into phases."""

    SEQUENTIAL = "sequential"
    SIZE_OPTIMIZED = "size_optimized"
    CATEGORY_FIRST = "category_first"
    DEPENDENCY_AWARE = "dependency_aware"
    PARALLEL = "parallel"


@dataclass
class CommitPlan:
    """Phases produced by one planning pass together with advisory notes."""

    phases: list[CommitPhase]
    strategy: CommitStrategy
    estimated_duration: EstimatedDuration
    optimization_notes: list[str] = field(default_factory=list)
