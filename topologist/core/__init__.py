"""Core modules for topologist.

This module contains the core functionality including:
- File categorization
- Commit phase planning
- Git operations
- Metadata persistence
- Orchestration
"""

from .categorizer import FileCategorizer
from .errors import (
    GitError,
    GitTimeoutError,
    MetadataError,
    NotInitializedError,
    PhaseNotFoundError,
    PlanValidationError,
    RepositoryError,
    TopologyError,
)
from .git import DiffStats, GitOperations, RepositoryStatus, ValidationResult
from .metadata import MetadataStore
from .orchestrator import Topologist
from .planner import CommitPlanner, determine_strategy

__all__ = [
    "FileCategorizer",
    "CommitPlanner",
    "determine_strategy",
    "GitOperations",
    "RepositoryStatus",
    "DiffStats",
    "ValidationResult",
    "MetadataStore",
    "Topologist",
    "TopologyError",
    "RepositoryError",
    "GitError",
    "GitTimeoutError",
    "MetadataError",
    "NotInitializedError",
    "PhaseNotFoundError",
    "PlanValidationError",
]
