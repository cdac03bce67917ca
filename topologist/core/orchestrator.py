"""Topologist: composes categorization, planning, git and metadata."""

import logging
from dataclasses import dataclass
from pathlib import Path

from .categorizer import FileCategorizer
from .errors import PhaseNotFoundError
from .git import DiffStats, GitOperations
from .metadata import MetadataStore, PhaseExecution, ProjectStats, SessionHistory
from .models import CategoryAnalysis, CommitPhase, CommitPlan, CommitStrategy
from .planner import CommitPlanner, verify_plan

logger = logging.getLogger(__name__)


@dataclass
class AnalysisStats:
    """Counts shown alongside an analysis."""

    total_files: int
    untracked_files: int
    modified_files: int
    estimated_total_size: int
    suggested_phases: int


@dataclass
class TopologyAnalysis:
    """Everything one read-only analysis pass produces."""

    category_analysis: CategoryAnalysis
    commit_phases: list[CommitPhase]
    stats: AnalysisStats
    fingerprint: str


@dataclass
class TrackedPhase:
    """A recorded phase paired with the real diff stats of its commit."""

    execution: PhaseExecution
    diff_stats: DiffStats


class Topologist:
    """Entry point used by the CLI."""

    def __init__(
        self,
        repo_path: str | Path = ".",
        git: GitOperations | None = None,
        store: MetadataStore | None = None,
        categorizer: FileCategorizer | None = None,
        planner: CommitPlanner | None = None,
    ):
        self.repo_path = Path(repo_path)
        self.git = git or GitOperations(self.repo_path)
        self.store = store or MetadataStore(self.repo_path)
        self.categorizer = categorizer or FileCategorizer()
        self.planner = planner or CommitPlanner()

    def analyze_repository(self) -> TopologyAnalysis:
        """
        Categorize every changed file and build the default plan.

        Reads git status only; nothing is written.
        """
        status = self.git.get_repository_status()
        category_analysis = self.categorizer.analyze_files(status.all_files)
        commit_phases = self.categorizer.generate_commit_plan(category_analysis)

        stats = AnalysisStats(
            total_files=len(status.all_files),
            untracked_files=len(status.untracked),
            modified_files=len(status.modified),
            estimated_total_size=category_analysis.estimated_total_size,
            suggested_phases=category_analysis.suggested_phases,
        )

        return TopologyAnalysis(
            category_analysis=category_analysis,
            commit_phases=commit_phases,
            stats=stats,
            fingerprint=status.fingerprint,
        )

    def plan(
        self, analysis: TopologyAnalysis | None = None, strategy: CommitStrategy | None = None
    ) -> CommitPlan:
        """
        Plan phases with the planner's strategies and check the result.

        Without an explicit strategy the one stored by ``save_plan`` is reused,
        so executing replays the plan that was saved.
        """
        analysis = analysis or self.analyze_repository()
        plan = self.planner.generate_plan(analysis.category_analysis, strategy or self.saved_strategy())
        verify_plan(plan.phases, analysis.category_analysis)
        return plan

    def saved_strategy(self) -> CommitStrategy | None:
        """Strategy persisted with the last saved plan, if it names one."""
        if not self.store.is_initialized():
            return None

        value = self.store.load_project_config().commit_strategy
        try:
            return CommitStrategy(value)
        except ValueError:
            # "phasal" and unknown values leave the choice to the planner
            return None

    def initialize(self) -> None:
        self.store.initialize_project()

    def save_plan(self, plan: CommitPlan) -> SessionHistory:
        """Initialize the project, persist the strategy and open a session for the plan."""
        self.store.initialize_project()
        self.store.set_commit_strategy(plan.strategy.value)
        return self.store.start_session(total_planned_phases=len(plan.phases))

    def execute_phase(self, phase_number: int, commit_phases: list[CommitPhase]) -> str:
        """
        Stage, commit and record one phase.

        The project must be initialized. Staging is not rolled back when the
        commit fails, and nothing is recorded until a commit hash exists.

        Args:
            phase_number: 1-based index into ``commit_phases``
            commit_phases: The phase list from a prior analysis or plan

        Returns:
            Hash of the new commit
        """
        self.store.load_project_config()

        if not 1 <= phase_number <= len(commit_phases):
            raise PhaseNotFoundError(
                f"Phase {phase_number} not found. Available: 1-{len(commit_phases)}"
                if commit_phases
                else f"Phase {phase_number} not found. The plan is empty."
            )

        phase = commit_phases[phase_number - 1]

        validation = self.git.validate_files_for_commit(phase.paths)
        for path in validation.large_files:
            logger.warning("Large file in phase %d: %s", phase_number, path)
        for path in validation.missing_files:
            logger.info("Phase %d includes a path not on disk (deleted?): %s", phase_number, path)

        commit_hash = self.git.stage_and_commit_files(phase.paths, phase.commit_message)

        self.store.record_phase_execution(
            phase_number,
            commit_hash,
            len(phase.files),
            phase.estimated_size,
            category=phase.category.value,
        )
        return commit_hash

    def complete_session(self) -> SessionHistory | None:
        return self.store.complete_current_session()

    def get_status(self) -> SessionHistory | None:
        return self.store.get_current_session()

    def project_stats(self) -> ProjectStats:
        return self.store.get_project_stats()

    def track(self) -> list[TrackedPhase]:
        """Pair each phase of the current session with its commit's diff stats."""
        session = self.store.get_current_session()
        if session is None:
            return []

        config = self.store.load_project_config()
        tracked = []
        for execution in session.phases:
            stats = self.git.get_diff_stats(execution.commit_hash) if config.size_tracking else DiffStats()
            tracked.append(TrackedPhase(execution=execution, diff_stats=stats))
        return tracked

    def analysis_is_current(self, analysis: TopologyAnalysis) -> bool:
        """Whether an unexpired cached analysis has the same fingerprint."""
        cached = self.store.load_cached_analysis()
        return cached is not None and cached.repository_hash == analysis.fingerprint

    def refresh_cache(self, analysis: TopologyAnalysis) -> None:
        if not self.store.is_initialized():
            return
        self.store.cache_analysis(analysis.stats.total_files, analysis.fingerprint)

    def clean(self) -> None:
        self.store.clean_all_metadata()
