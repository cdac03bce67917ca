"""Main CLI module for topologist."""

import json
import logging
import sys
from typing import NoReturn

import click

from ..core.errors import MetadataError, TopologyError
from ..core.models import CommitStrategy
from ..core.orchestrator import Topologist
from . import console

logger = logging.getLogger(__name__)

STRATEGY_CHOICES = [strategy.value for strategy in CommitStrategy]


def handle_error(error: Exception) -> NoReturn:
    """Handle errors in a consistent way."""
    if isinstance(error, KeyboardInterrupt):
        console.print_error("Operation cancelled by user.")
    elif isinstance(error, MetadataError):
        console.print_error(f"Topology metadata problem: {error}")
        console.print_info("Run 'topologist clean' and 'topologist init' to start over.")
    else:
        console.print_error(str(error))
    sys.exit(1)


def _strategy(value: str | None) -> CommitStrategy | None:
    return CommitStrategy(value) if value else None


@click.group()
@click.option("-C", "--repo", "repo", default=".", type=click.Path(file_okay=False), help="Repository root")
@click.option("-d", "--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, repo: str, debug: bool) -> None:
    """Organize uncommitted changes into ordered, size-bounded commit phases."""
    console.setup_logging(debug)
    ctx.obj = Topologist(repo)


@main.command()
@click.option("--has-unorganized", is_flag=True, help="Exit 1 if there are uncommitted files, 0 otherwise")
@click.pass_obj
def analyze(topologist: Topologist, has_unorganized: bool) -> None:
    """Analyze repository state without creating files."""
    try:
        analysis = topologist.analyze_repository()
        if has_unorganized:
            sys.exit(1 if analysis.stats.total_files else 0)

        unchanged = topologist.analysis_is_current(analysis)
        console.print_analysis_summary(analysis)
        if unchanged:
            console.print_info("Working tree unchanged since the last analysis.")
        topologist.refresh_cache(analysis)

        if analysis.commit_phases:
            console.print_info("Run 'topologist plan --save' to proceed")
    except (TopologyError, KeyboardInterrupt) as e:
        handle_error(e)


@main.command()
@click.option("--save", is_flag=True, help="Initialize metadata and open a session for this plan")
@click.option("--check", is_flag=True, help="Only report whether a plan is available")
@click.option("--strategy", type=click.Choice(STRATEGY_CHOICES), default=None, help="Force a planning strategy")
@click.pass_obj
def plan(topologist: Topologist, save: bool, check: bool, strategy: str | None) -> None:
    """Generate a detailed commit plan."""
    try:
        commit_plan = topologist.plan(strategy=_strategy(strategy))

        if not commit_plan.phases:
            console.print_success("Repository is already organized!")
            return

        if check:
            console.print_info(f"Plan available: {len(commit_plan.phases)} phases ready for execution")
            return

        console.print_plan(commit_plan)

        if save:
            topologist.save_plan(commit_plan)
            console.print_success(f"Plan saved to {topologist.store.state_dir_name}/ metadata")
            console.print_info("Run 'topologist execute all' to proceed")
        else:
            console.print_info("Run with --save to create an executable plan")
    except (TopologyError, KeyboardInterrupt) as e:
        handle_error(e)


@main.command()
@click.argument("phase")
@click.option("--strategy", type=click.Choice(STRATEGY_CHOICES), default=None, help="Plan with this strategy")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompts")
@click.pass_obj
def execute(topologist: Topologist, phase: str, strategy: str | None, yes: bool) -> None:
    """Execute PHASE (a number) or 'all' phases."""
    if phase != "all" and not phase.isdigit():
        raise click.BadParameter("expected a phase number or 'all'", param_hint="PHASE")

    try:
        # Planning reads git first, so a bad repository fails before anything is written
        phases = topologist.plan(strategy=_strategy(strategy)).phases

        if not phases:
            console.print_success("No phases to execute - repository is organized")
            return

        if phase == "all":
            if not yes and not console.confirm_action(f"Commit all {len(phases)} phases?"):
                console.print_warning("Execution cancelled.")
                return

            topologist.initialize()
            for commit_phase in phases:
                console.print_commit_message(commit_phase.commit_message)
                commit_hash = topologist.execute_phase(commit_phase.phase_number, phases)
                console.print_success(
                    f"Phase {commit_phase.phase_number}: {commit_hash[:8]} "
                    f"({len(commit_phase.files)} files, +{commit_phase.estimated_size} estimated lines)"
                )

            topologist.complete_session()
            console.print_success("All phases complete! Repository synchronized.")
            return

        number = int(phase)
        topologist.initialize()
        commit_hash = topologist.execute_phase(number, phases)
        console.print_success(f"Phase {number} complete: {commit_hash[:8]}")
    except (TopologyError, KeyboardInterrupt) as e:
        handle_error(e)


@main.command()
@click.pass_obj
def status(topologist: Topologist) -> None:
    """Show the current topology session."""
    try:
        console.print_session_status(topologist.get_status())
        if topologist.store.is_initialized():
            console.print_project_stats(topologist.project_stats())
    except (TopologyError, KeyboardInterrupt) as e:
        handle_error(e)


@main.command()
@click.pass_obj
def track(topologist: Topologist) -> None:
    """Show size changes of the phases committed in the current session."""
    try:
        console.print_tracking(topologist.track())
    except (TopologyError, KeyboardInterrupt) as e:
        handle_error(e)


@main.command()
@click.pass_obj
def init(topologist: Topologist) -> None:
    """Initialize topology management for the repository."""
    try:
        topologist.initialize()
        console.print_success("Topology management initialized")
        console.print_info(f"Metadata directory: {topologist.store.state_dir_name}/")
    except (TopologyError, KeyboardInterrupt) as e:
        handle_error(e)


@main.command()
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_obj
def clean(topologist: Topologist, yes: bool) -> None:
    """Remove all topology metadata."""
    try:
        if not yes and not console.confirm_action("Remove all topology metadata?"):
            return
        topologist.clean()
        console.print_success("All topology metadata removed")
    except (TopologyError, KeyboardInterrupt) as e:
        handle_error(e)


@main.command()
@click.pass_obj
def export(topologist: Topologist) -> None:
    """Print the current session as JSON."""
    try:
        session = topologist.get_status()
        click.echo(json.dumps(session.to_dict() if session else {}, indent=2))
    except (TopologyError, KeyboardInterrupt) as e:
        handle_error(e)


if __name__ == "__main__":
    main()
