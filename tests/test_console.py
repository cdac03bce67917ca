"""Tests for console output and user interaction."""

import io
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from rich.console import Console

from topologist.cli import console
from topologist.core.categorizer import FileCategorizer
from topologist.core.models import CommitPhase, FileCategory
from topologist.core.git import DiffStats
from topologist.core.metadata import PhaseExecution, ProjectStats, SessionHistory
from topologist.core.orchestrator import AnalysisStats, TopologyAnalysis, TrackedPhase
from topologist.core.planner import CommitPlanner

STARTED = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_console(mocker):
    """Fixture for mocked console."""
    return mocker.patch("topologist.cli.console.console")


@pytest.fixture
def analysis():
    categorizer = FileCategorizer(max_phase_size=1500)
    category_analysis = categorizer.analyze_files([f"src/m{i}.rs" for i in range(5)] + ["README.md"])
    return TopologyAnalysis(
        category_analysis=category_analysis,
        commit_phases=categorizer.generate_commit_plan(category_analysis),
        stats=AnalysisStats(6, 6, 0, category_analysis.estimated_total_size, category_analysis.suggested_phases),
        fingerprint="abc",
    )


def _printed(mock_console) -> str:
    return "\n".join(str(call.args[0]) for call in mock_console.print.call_args_list if call.args)


def test_print_analysis_summary(mock_console, analysis):
    """Test printing counts and the category table."""
    console.print_analysis_summary(analysis)

    output = _printed(mock_console)
    assert "Total files: [cyan]6[/cyan]" in output
    assert "Suggested: [cyan]2[/cyan]-phase" in output


def test_print_plan_truncates_file_lists(mock_console, analysis):
    plan = CommitPlanner(max_phase_size=1500).generate_plan(analysis.category_analysis)

    console.print_plan(plan)

    output = _printed(mock_console)
    assert "Detailed Commit Plan" in output
    # four Rust files fit under the cap, so one phase lists three and a remainder
    assert "... and 1 more files" in output
    assert "Estimated effort" in output


def test_print_session_status_none(mock_console):
    console.print_session_status(None)

    assert "No active topology session" in _printed(mock_console)


def test_print_session_status(mock_console):
    execution = PhaseExecution(1, "abc123def", 2, 300, "SourceCode", STARTED)
    session = SessionHistory("s-1", STARTED, phases=[execution], total_planned_phases=3)

    console.print_session_status(session)

    output = _printed(mock_console)
    assert "Phases completed: 1/3" in output
    assert "abc123def" in output


def test_print_project_stats(mock_console):
    console.print_project_stats(ProjectStats("p-1", STARTED, 2, 5, 9, True))

    assert "2 sessions, 5 phases, 9 files" in _printed(mock_console)


def test_print_tracking(mock_console):
    tracked = [
        TrackedPhase(PhaseExecution(1, "aaaaaaaaaa", 2, 300, "SourceCode", STARTED), DiffStats(2, 40, 3)),
        TrackedPhase(PhaseExecution(2, "bbbbbbbbbb", 1, 100, "Configuration", STARTED), DiffStats(1, 5, 0)),
    ]

    console.print_tracking(tracked)

    assert "Total Impact: +400 estimated lines, 3 files" in _printed(mock_console)


def test_print_tracking_empty(mock_console):
    console.print_tracking([])

    assert "No tracking data available" in _printed(mock_console)


def test_confirm_action():
    with patch("topologist.cli.console.Confirm.ask", return_value=True) as mock_ask:
        assert console.confirm_action("Proceed?") is True
        mock_ask.assert_called_once_with("\nProceed?")


def test_bracketed_text_is_not_markup(mocker):
    """Test that git stderr and paths with brackets print literally."""
    output = io.StringIO()
    mocker.patch("topologist.cli.console.console", Console(file=output, width=200, color_system=None))

    console.print_error("fatal: pathspec '[/oops]' did not match any files")
    console.print_warning("[bold]not bold[/bold]")

    text = output.getvalue()
    assert "pathspec '[/oops]' did not match" in text
    assert "[bold]not bold[/bold]" in text


def test_print_phase_escapes_paths(mock_console, categorized_file):
    phase = CommitPhase(1, [categorized_file("pages/[id].tsx")], FileCategory.SOURCE_CODE, 300, "feat: Add 1 file")

    console.print_phase(phase)

    assert "\\[id].tsx" in _printed(mock_console)


def test_message_helpers(mock_console):
    console.print_success("done")
    console.print_error("failed")
    console.print_info("note")
    console.print_warning("careful")

    output = _printed(mock_console)
    assert "✅ done" in output
    assert "❌ failed" in output
    assert "ℹ️ note" in output
    assert "⚠️ careful" in output
