"""Topologist - organize uncommitted changes into ordered commit phases."""

from .core.categorizer import FileCategorizer
from .core.errors import (
    GitError,
    MetadataError,
    PhaseNotFoundError,
    RepositoryError,
    TopologyError,
)
from .core.git import GitOperations
from .core.metadata import MetadataStore, ProjectConfig, SessionHistory
from .core.models import CategorizedFile, CategoryAnalysis, CommitPhase, CommitStrategy, FileCategory
from .core.orchestrator import Topologist, TopologyAnalysis
from .core.planner import CommitPlanner

__version__ = "0.1.0"

__all__ = [
    "Topologist",
    "TopologyAnalysis",
    "FileCategorizer",
    "FileCategory",
    "CategorizedFile",
    "CategoryAnalysis",
    "CommitPhase",
    "CommitPlanner",
    "CommitStrategy",
    "GitOperations",
    "MetadataStore",
    "ProjectConfig",
    "SessionHistory",
    "TopologyError",
    "RepositoryError",
    "GitError",
    "MetadataError",
    "PhaseNotFoundError",
]
