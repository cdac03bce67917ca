"""Commit planning module: turns a category analysis into ordered commit phases."""

import logging
from collections import Counter, defaultdict
from typing import Callable

from ..config.settings import settings
from .categorizer import sequential_phases
from .errors import PlanValidationError
from .messages import generate_commit_message
from .models import (
    CategorizedFile,
    CategoryAnalysis,
    CommitPhase,
    CommitPlan,
    CommitStrategy,
    EstimatedDuration,
    FileCategory,
)

logger = logging.getLogger(__name__)

LARGE_PHASE_SIZE = 1500
BUSY_PHASE_FILES = 20

STRATEGY_NOTES = {
    CommitStrategy.SIZE_OPTIMIZED: "Phases optimized for balanced commit sizes",
    CommitStrategy.CATEGORY_FIRST: "Files grouped by category for logical organization",
    CommitStrategy.DEPENDENCY_AWARE: "Commit order considers file dependencies",
}


def determine_strategy(analysis: CategoryAnalysis) -> CommitStrategy:
    """
    Pick a strategy from file count, total size and category count.

    Args:
        analysis: Result of a categorization pass

    Returns:
        The strategy to plan with
    """
    total_files = analysis.file_count
    total_size = analysis.estimated_total_size
    category_count = len(analysis.category_counts)

    if total_files > 50 and total_size > 5000:
        return CommitStrategy.SIZE_OPTIMIZED
    if category_count > 4:
        return CommitStrategy.CATEGORY_FIRST
    if total_files > 30:
        return CommitStrategy.DEPENDENCY_AWARE
    return CommitStrategy.SEQUENTIAL


def dominant_category(files: list[CategorizedFile]) -> FileCategory:
    """Most frequent category among ``files``; ties go to the higher weight."""
    if not files:
        return FileCategory.UNKNOWN

    counts = Counter(f.category for f in files)
    return max(counts, key=lambda category: (counts[category], category.weight))


def verify_plan(phases: list[CommitPhase], analysis: CategoryAnalysis) -> None:
    """
    Check that phases partition the analyzed files and are numbered 1..N.

    Raises:
        PlanValidationError: If a file is missing, duplicated or foreign, or the
            numbering has gaps
    """
    numbers = [phase.phase_number for phase in phases]
    if numbers != list(range(1, len(phases) + 1)):
        raise PlanValidationError(f"Phase numbers are not contiguous: {numbers}")

    planned = Counter(path for phase in phases for path in phase.paths)
    duplicates = sorted(path for path, count in planned.items() if count > 1)
    if duplicates:
        raise PlanValidationError(f"Files planned more than once: {', '.join(duplicates)}")

    expected = Counter(f.path for f in analysis.files)
    missing = sorted(set(expected) - set(planned))
    extra = sorted(set(planned) - set(expected))
    if missing:
        raise PlanValidationError(f"Files missing from plan: {', '.join(missing)}")
    if extra:
        raise PlanValidationError(f"Files not in analysis: {', '.join(extra)}")


class CommitPlanner:
    """Generates commit phase sequences with a selectable strategy."""

    def __init__(self, max_phase_size: int | None = None, preferred_files_per_phase: int | None = None):
        self.max_phase_size = max_phase_size or settings.max_phase_size
        self.preferred_files_per_phase = preferred_files_per_phase or settings.preferred_files_per_phase
        self._handlers: dict[CommitStrategy, Callable[[CategoryAnalysis], list[CommitPhase]]] = {
            CommitStrategy.SEQUENTIAL: self.generate_sequential_phases,
            CommitStrategy.SIZE_OPTIMIZED: self.generate_size_optimized_phases,
            CommitStrategy.CATEGORY_FIRST: self.generate_category_first_phases,
            CommitStrategy.DEPENDENCY_AWARE: self.generate_dependency_aware_phases,
            CommitStrategy.PARALLEL: self.generate_parallel_phases,
        }

    def generate_plan(self, analysis: CategoryAnalysis, strategy: CommitStrategy | None = None) -> CommitPlan:
        """
        Generate a commit plan from a category analysis.

        Args:
            analysis: Result of a categorization pass
            strategy: Strategy to force; chosen with ``determine_strategy`` when omitted

        Returns:
            CommitPlan with phases, advisory duration and notes
        """
        strategy = strategy or determine_strategy(analysis)
        phases = self.generate_phases(analysis, strategy)

        logger.info("Planned %d phases with %s strategy", len(phases), strategy.value)

        return CommitPlan(
            phases=phases,
            strategy=strategy,
            estimated_duration=self.calculate_estimated_duration(phases),
            optimization_notes=self.generate_optimization_notes(phases, strategy),
        )

    def generate_phases(self, analysis: CategoryAnalysis, strategy: CommitStrategy) -> list[CommitPhase]:
        handler = self._handlers.get(strategy)
        if handler is None:
            raise ValueError(f"Unsupported commit strategy: {strategy!r}")
        return handler(analysis)

    def _create_phase(
        self, phase_number: int, files: list[CategorizedFile], category: FileCategory
    ) -> CommitPhase:
        return CommitPhase(
            phase_number=phase_number,
            files=list(files),
            category=category,
            estimated_size=sum(f.estimated_size for f in files),
            commit_message=generate_commit_message(files, category),
        )

    def generate_sequential_phases(self, analysis: CategoryAnalysis) -> list[CommitPhase]:
        return sequential_phases(analysis.files, self.max_phase_size)

    def generate_size_optimized_phases(self, analysis: CategoryAnalysis) -> list[CommitPhase]:
        """
        Pack the largest files first.

        A phase is flushed before it would exceed the cap, and also as soon as
        it reaches half the cap while holding at least five files, so a few
        large files cannot crowd out everything else.
        """
        phases: list[CommitPhase] = []
        files_by_size = sorted(analysis.files, key=lambda f: f.estimated_size, reverse=True)
        target_size = self.max_phase_size // 2

        current: list[CategorizedFile] = []
        current_size = 0

        for file in files_by_size:
            if current and current_size + file.estimated_size > self.max_phase_size:
                phases.append(self._create_phase(len(phases) + 1, current, dominant_category(current)))
                current, current_size = [], 0

            current.append(file)
            current_size += file.estimated_size

            if current_size >= target_size and len(current) >= 5:
                phases.append(self._create_phase(len(phases) + 1, current, dominant_category(current)))
                current, current_size = [], 0

        if current:
            phases.append(self._create_phase(len(phases) + 1, current, dominant_category(current)))

        return phases

    def generate_category_first_phases(self, analysis: CategoryAnalysis) -> list[CommitPhase]:
        """One or more phases per category, visiting categories by weight."""
        phases: list[CommitPhase] = []
        files_by_category: dict[FileCategory, list[CategorizedFile]] = defaultdict(list)

        for file in analysis.files:
            files_by_category[file.category].append(file)

        chunk_size = self.preferred_files_per_phase
        for category in sorted(files_by_category, key=lambda c: c.weight, reverse=True):
            files = files_by_category[category]
            for start in range(0, len(files), chunk_size):
                phases.append(self._create_phase(len(phases) + 1, files[start : start + chunk_size], category))

        return phases

    def generate_dependency_aware_phases(self, analysis: CategoryAnalysis) -> list[CommitPhase]:
        # Approximation: no import graph, only whole-phase reordering by category weight.
        phases = self.generate_sequential_phases(analysis)
        phases.sort(key=lambda phase: phase.category.weight, reverse=True)

        for number, phase in enumerate(phases, start=1):
            phase.phase_number = number

        return phases

    def generate_parallel_phases(self, analysis: CategoryAnalysis) -> list[CommitPhase]:
        # Same grouping as category-first; phases carry no independence marker.
        return self.generate_category_first_phases(analysis)

    @staticmethod
    def calculate_estimated_duration(phases: list[CommitPhase]) -> EstimatedDuration:
        """Advisory estimate of review time and complexity. Never gates execution."""
        total_phases = len(phases)
        total_files = sum(len(p.files) for p in phases)
        total_size = sum(p.estimated_size for p in phases)

        time_per_file = 0 if total_files > 50 else 1
        estimated_minutes = total_phases * 2 + total_files * time_per_file + total_size // 1000

        complexity_score = min(
            min(total_phases, 10) * 2 + min(total_files, 100) // 10 + min(total_size, 10000) // 1000,
            10,
        )

        return EstimatedDuration(
            total_phases=total_phases,
            estimated_minutes=estimated_minutes,
            complexity_score=complexity_score,
        )

    @staticmethod
    def generate_optimization_notes(phases: list[CommitPhase], strategy: CommitStrategy) -> list[str]:
        notes = []

        if strategy in STRATEGY_NOTES:
            notes.append(STRATEGY_NOTES[strategy])

        large_phases = sum(1 for p in phases if p.estimated_size > LARGE_PHASE_SIZE)
        if large_phases:
            notes.append(
                f"{large_phases} phases are large (>{LARGE_PHASE_SIZE} lines) - consider reviewing carefully"
            )

        busy_phases = sum(1 for p in phases if len(p.files) > BUSY_PHASE_FILES)
        if busy_phases:
            notes.append(
                f"{busy_phases} phases have many files (>{BUSY_PHASE_FILES}) - consider splitting if needed"
            )

        if len(phases) > 10:
            notes.append("Consider executing all phases in one run for efficient batch processing")

        return notes
