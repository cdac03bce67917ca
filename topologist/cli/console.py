"""Console output formatting and user interaction."""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table
from rich.text import Text

from ..core.metadata import ProjectStats, SessionHistory
from ..core.models import CommitPhase, CommitPlan, FileCategory
from ..core.orchestrator import TopologyAnalysis, TrackedPhase

console = Console()

CATEGORY_ICONS = {
    FileCategory.CONFIGURATION: "⚙️",
    FileCategory.DOCUMENTATION: "📚",
    FileCategory.SOURCE_CODE: "💻",
    FileCategory.DEVELOPMENT_TOOLS: "🔧",
    FileCategory.MEDIA_ASSETS: "🎨",
    FileCategory.BUILD_ARTIFACTS: "📦",
    FileCategory.UNKNOWN: "📄",
}

MAX_FILES_SHOWN = 3


def setup_logging(debug: bool = False) -> None:
    """Configure logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=debug, markup=False)],
        force=True,
    )


def print_analysis_summary(analysis: TopologyAnalysis) -> None:
    """Print repository counts and per-category totals."""
    stats = analysis.stats
    console.print("\n[bold blue]🔍 Repository Analysis Complete[/bold blue]")
    console.print(f"  • Total files: [cyan]{stats.total_files}[/cyan]")
    console.print(f"  • Untracked files: [cyan]{stats.untracked_files}[/cyan]")
    console.print(f"  • Modified files: [cyan]{stats.modified_files}[/cyan]")
    console.print(f"  • Estimated growth: [cyan]+{stats.estimated_total_size}[/cyan] lines")
    console.print(f"  • Suggested: [cyan]{stats.suggested_phases}[/cyan]-phase commit strategy")

    counts = analysis.category_analysis.category_counts
    if not counts:
        return

    table = Table(title="File Categories", show_header=True, header_style="bold cyan")
    table.add_column("Category")
    table.add_column("Files", justify="right")
    for category in sorted(counts, key=lambda c: c.weight, reverse=True):
        table.add_row(f"{CATEGORY_ICONS[category]} {category.value}", str(counts[category]))
    console.print(table)


def print_phase(phase: CommitPhase) -> None:
    """Print one phase with its first few files."""
    icon = CATEGORY_ICONS[phase.category]
    console.print(f"\n[bold]Phase {phase.phase_number}:[/bold] {icon} {escape(phase.commit_message)}")
    console.print(
        f"  [dim]Files: {len(phase.files)} (+{phase.estimated_size} estimated lines), "
        f"category: {phase.category.value}[/dim]"
    )
    for file in phase.files[:MAX_FILES_SHOWN]:
        console.print(f"  - [cyan]{escape(file.path)}[/cyan]")
    if len(phase.files) > MAX_FILES_SHOWN:
        console.print(f"  [dim]... and {len(phase.files) - MAX_FILES_SHOWN} more files[/dim]")


def print_plan(plan: CommitPlan) -> None:
    """Print a full commit plan."""
    console.print(
        f"\n[bold blue]📋 Detailed Commit Plan ({len(plan.phases)} phases, "
        f"{plan.strategy.value} strategy)[/bold blue]"
    )
    for phase in plan.phases:
        print_phase(phase)

    duration = plan.estimated_duration
    total_size = sum(p.estimated_size for p in plan.phases)
    console.print(
        f"\n[cyan]📊 Total Impact:[/cyan] +{total_size} estimated lines across {len(plan.phases)} commits"
    )
    console.print(
        f"[cyan]⏱️ Estimated effort:[/cyan] ~{duration.estimated_minutes} min, "
        f"complexity {duration.complexity_score}/10"
    )
    for note in plan.optimization_notes:
        console.print(f"  💡 {note}")


def print_session_status(session: SessionHistory | None) -> None:
    if session is None:
        console.print("\n[bold blue]📊 No active topology session[/bold blue]")
        console.print("   Run 'topologist plan --save' to start")
        return

    planned = session.total_planned_phases if session.total_planned_phases is not None else "?"
    console.print("\n[bold blue]📊 Topology Session Active[/bold blue]")
    console.print(f"  • Session: [cyan]{session.session_id}[/cyan]")
    console.print(f"  • Started: {session.started.isoformat(timespec='seconds')}")
    console.print(f"  • Phases completed: {len(session.phases)}/{planned}")
    if session.phases:
        console.print(f"  • Last commit: [cyan]{session.phases[-1].commit_hash}[/cyan]")


def print_project_stats(stats: ProjectStats) -> None:
    console.print(
        f"  [dim]Project {stats.project_id}: {stats.total_sessions} sessions, "
        f"{stats.total_phases} phases, {stats.total_files_processed} files[/dim]"
    )


def print_tracking(tracked: list[TrackedPhase]) -> None:
    """Print estimated and real size change per recorded phase."""
    if not tracked:
        console.print("\n[bold blue]📈 No tracking data available[/bold blue]")
        return

    table = Table(title="📈 Size Change Tracking", header_style="bold cyan")
    table.add_column("Phase", justify="right")
    table.add_column("Commit")
    table.add_column("Files", justify="right")
    table.add_column("Estimated", justify="right")
    table.add_column("Insertions", justify="right", style="green")
    table.add_column("Deletions", justify="right", style="red")

    for item in tracked:
        execution, diff = item.execution, item.diff_stats
        table.add_row(
            str(execution.phase),
            execution.commit_hash[:8],
            str(execution.files_count),
            f"+{execution.size_change}",
            f"+{diff.insertions}",
            f"-{diff.deletions}",
        )
    console.print(table)

    total_estimated = sum(t.execution.size_change for t in tracked)
    total_files = sum(t.execution.files_count for t in tracked)
    console.print(f"  Total Impact: +{total_estimated} estimated lines, {total_files} files")


def print_commit_message(message: str) -> None:
    """Print formatted commit message."""
    console.print(Panel(Text(message), expand=False, border_style="green"))


def confirm_action(prompt: str) -> bool:
    """Ask user to confirm an action."""
    return Confirm.ask(f"\n{prompt}")


def print_success(message: str) -> None:
    """Print success message."""
    console.print(f"\n[bold green]✅ {escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print error message."""
    console.print(f"\n[bold red]❌ {escape(message)}[/bold red]")


def print_info(message: str) -> None:
    """Print info message."""
    console.print(f"\n[bold blue]ℹ️ {escape(message)}[/bold blue]")


def print_warning(message: str) -> None:
    """Print warning message."""
    console.print(f"\n[bold yellow]⚠️ {escape(message)}[/bold yellow]")
