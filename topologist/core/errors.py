"""Exception types raised by the topology core.

The CLI catches ``TopologyError`` and renders it; the subclasses let callers
tell an environment problem apart from a failed git command or damaged
state files.
"""


class TopologyError(Exception):
    """Base class for all topologist errors."""


class RepositoryError(TopologyError):
    """Raised when git is missing or the working directory is not a repository."""


class GitError(TopologyError):
    """Git operation error."""


class GitTimeoutError(GitError):
    """Raised when a git command does not finish within the configured timeout."""


class MetadataError(TopologyError):
    """Raised when the state files cannot be read, parsed or written."""


class NotInitializedError(MetadataError):
    """Raised when an operation needs an initialized project and there is none."""


class PhaseNotFoundError(TopologyError):
    """Raised when a phase number falls outside the supplied plan."""


class PlanValidationError(TopologyError):
    """Raised when a generated plan does not partition the analyzed files."""
