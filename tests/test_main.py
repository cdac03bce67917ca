"""Tests for CLI main module."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from topologist.cli.main import main
from topologist.core.errors import MetadataError, PhaseNotFoundError
from topologist.core.git import GitOperations, RepositoryStatus
from topologist.core.metadata import SessionHistory
from topologist.core.models import CommitStrategy
from topologist.core.orchestrator import Topologist
from topologist.core.planner import CommitPlanner


@pytest.fixture
def runner():
    """Fixture for CLI runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("topologist.cli.main.console.setup_logging"):
        yield


def _analysis(paths: list[str]):
    git = MagicMock(spec=GitOperations)
    git.get_repository_status.return_value = RepositoryStatus(untracked=list(paths))
    return Topologist(".", git=git, store=MagicMock()).analyze_repository()


@pytest.fixture
def analysis():
    return _analysis(["package.json", "src/main.rs", "README.md"])


@pytest.fixture
def plan(analysis):
    return CommitPlanner(max_phase_size=1500).generate_plan(analysis.category_analysis)


@pytest.fixture
def mock_topologist(analysis, plan):
    """Fixture for a mocked Topologist returned by the CLI."""
    mock = MagicMock()
    mock.analyze_repository.return_value = analysis
    mock.analysis_is_current.return_value = False
    mock.plan.return_value = plan
    mock.execute_phase.return_value = "0123456789abcdef"
    mock.get_status.return_value = None
    mock.track.return_value = []
    mock.store.is_initialized.return_value = False
    mock.store.state_dir_name = ".topologist"
    with patch("topologist.cli.main.Topologist") as mock_class:
        mock_class.return_value = mock
        mock.constructor = mock_class
        yield mock


class TestCliBasic:
    """Test basic CLI functionality."""

    def test_help_text(self, runner):
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "Usage:" in result.output
        for command in ("analyze", "plan", "execute", "status", "track", "init", "clean", "export"):
            assert command in result.output

    def test_repo_option(self, runner, mock_topologist):
        result = runner.invoke(main, ["-C", "some/repo", "status"])

        assert result.exit_code == 0
        mock_topologist.constructor.assert_called_once_with("some/repo")


class TestAnalyze:
    """Test the analyze command."""

    def test_analyze_summary(self, runner, mock_topologist, analysis):
        result = runner.invoke(main, ["analyze"])

        assert result.exit_code == 0
        assert "Repository Analysis Complete" in result.output
        assert "plan --save" in result.output
        mock_topologist.refresh_cache.assert_called_once_with(analysis)

    def test_analyze_unchanged_tree(self, runner, mock_topologist):
        mock_topologist.analysis_is_current.return_value = True

        result = runner.invoke(main, ["analyze"])

        assert "unchanged since the last analysis" in result.output

    def test_has_unorganized(self, runner, mock_topologist):
        result = runner.invoke(main, ["analyze", "--has-unorganized"])

        assert result.exit_code == 1
        mock_topologist.refresh_cache.assert_not_called()

    def test_has_unorganized_clean_tree(self, runner, mock_topologist):
        mock_topologist.analyze_repository.return_value = _analysis([])

        result = runner.invoke(main, ["analyze", "--has-unorganized"])

        assert result.exit_code == 0


class TestPlan:
    """Test the plan command."""

    def test_plan_preview(self, runner, mock_topologist):
        result = runner.invoke(main, ["plan"])

        assert result.exit_code == 0
        assert "Detailed Commit Plan" in result.output
        assert "Run with --save" in result.output
        mock_topologist.save_plan.assert_not_called()

    def test_plan_save(self, runner, mock_topologist, plan):
        result = runner.invoke(main, ["plan", "--save"])

        assert result.exit_code == 0
        assert "Plan saved" in result.output
        mock_topologist.save_plan.assert_called_once_with(plan)

    def test_plan_check(self, runner, mock_topologist, plan):
        result = runner.invoke(main, ["plan", "--check"])

        assert result.exit_code == 0
        assert f"{len(plan.phases)} phases ready" in result.output

    def test_plan_strategy(self, runner, mock_topologist):
        result = runner.invoke(main, ["plan", "--strategy", "category_first"])

        assert result.exit_code == 0
        mock_topologist.plan.assert_called_once_with(strategy=CommitStrategy.CATEGORY_FIRST)

    def test_plan_invalid_strategy(self, runner, mock_topologist):
        result = runner.invoke(main, ["plan", "--strategy", "random"])

        assert result.exit_code == 2

    def test_plan_organized_repository(self, runner, mock_topologist):
        mock_topologist.plan.return_value = CommitPlanner().generate_plan(_analysis([]).category_analysis)

        result = runner.invoke(main, ["plan"])

        assert result.exit_code == 0
        assert "already organized" in result.output


class TestExecute:
    """Test the execute command."""

    def test_execute_all(self, runner, mock_topologist, plan):
        result = runner.invoke(main, ["execute", "all", "-y"])

        assert result.exit_code == 0
        mock_topologist.initialize.assert_called_once()
        assert mock_topologist.execute_phase.call_count == len(plan.phases)
        mock_topologist.complete_session.assert_called_once()
        assert "All phases complete" in result.output

    def test_execute_all_declined(self, runner, mock_topologist):
        with patch("topologist.cli.main.console.confirm_action", return_value=False):
            result = runner.invoke(main, ["execute", "all"])

        assert result.exit_code == 0
        assert "Execution cancelled" in result.output
        mock_topologist.execute_phase.assert_not_called()

    def test_execute_single_phase(self, runner, mock_topologist, plan):
        result = runner.invoke(main, ["execute", "2"])

        assert result.exit_code == 0
        mock_topologist.execute_phase.assert_called_once_with(2, plan.phases)
        mock_topologist.complete_session.assert_not_called()
        assert "01234567" in result.output

    def test_execute_invalid_phase(self, runner, mock_topologist):
        result = runner.invoke(main, ["execute", "first"])

        assert result.exit_code == 2
        mock_topologist.execute_phase.assert_not_called()

    def test_execute_missing_phase(self, runner, mock_topologist):
        mock_topologist.execute_phase.side_effect = PhaseNotFoundError("Phase 9 not found. Available: 1-3")

        result = runner.invoke(main, ["execute", "9"])

        assert result.exit_code == 1
        assert "Phase 9 not found" in result.output

    def test_execute_nothing_to_do(self, runner, mock_topologist):
        mock_topologist.plan.return_value = CommitPlanner().generate_plan(_analysis([]).category_analysis)

        result = runner.invoke(main, ["execute", "all", "-y"])

        assert result.exit_code == 0
        assert "repository is organized" in result.output


class TestExecuteAgainstRepository:
    """Test execute with a real Topologist."""

    def test_execute_outside_repository_writes_nothing(self, runner, tmp_path):
        result = runner.invoke(
            main,
            ["-C", str(tmp_path), "execute", "1"],
            env={"GIT_CEILING_DIRECTORIES": str(tmp_path.parent)},
        )

        assert result.exit_code == 1
        assert list(tmp_path.iterdir()) == []

    def test_execute_follows_saved_strategy(self, runner, git_repo):
        """Test that execute replays the strategy chosen with plan --save."""
        for i in range(3):
            git_repo.write(f"src/m{i}.py", "print('hi')\n")
        git_repo.write("README.md", "# Demo\n")
        repo = str(git_repo.path)

        saved = runner.invoke(main, ["-C", repo, "plan", "--save", "--strategy", "size_optimized"])
        executed = runner.invoke(main, ["-C", repo, "execute", "1"])

        assert saved.exit_code == 0
        assert executed.exit_code == 0
        committed = set(git_repo.git("show", "--name-only", "--format=", "HEAD").split())
        assert {"README.md", "src/m0.py", "src/m1.py", "src/m2.py"} <= committed


class TestCliErrors:
    """Test CLI error handling."""

    def test_keyboard_interrupt(self, runner, mock_topologist):
        mock_topologist.analyze_repository.side_effect = KeyboardInterrupt()

        result = runner.invoke(main, ["analyze"])

        assert result.exit_code == 1
        assert "Operation cancelled by user" in result.output

    def test_metadata_error_suggests_reset(self, runner, mock_topologist):
        mock_topologist.get_status.side_effect = MetadataError("Malformed commit history")

        result = runner.invoke(main, ["status"])

        assert result.exit_code == 1
        assert "Malformed commit history" in result.output
        assert "topologist clean" in result.output


class TestSessionCommands:
    """Test status, track, init, clean and export."""

    def test_status_without_session(self, runner, mock_topologist):
        result = runner.invoke(main, ["status"])

        assert result.exit_code == 0
        assert "No active topology session" in result.output
        mock_topologist.project_stats.assert_not_called()

    def test_track_without_data(self, runner, mock_topologist):
        result = runner.invoke(main, ["track"])

        assert result.exit_code == 0
        assert "No tracking data available" in result.output

    def test_init(self, runner, mock_topologist):
        result = runner.invoke(main, ["init"])

        assert result.exit_code == 0
        mock_topologist.initialize.assert_called_once()
        assert "initialized" in result.output

    def test_clean_confirmed(self, runner, mock_topologist):
        result = runner.invoke(main, ["clean", "-y"])

        assert result.exit_code == 0
        mock_topologist.clean.assert_called_once()

    def test_clean_declined(self, runner, mock_topologist):
        with patch("topologist.cli.main.console.confirm_action", return_value=False):
            result = runner.invoke(main, ["clean"])

        assert result.exit_code == 0
        mock_topologist.clean.assert_not_called()

    def test_export_without_session(self, runner, mock_topologist):
        result = runner.invoke(main, ["export"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {}

    def test_export_session(self, runner, mock_topologist):
        session = SessionHistory(session_id="s-1", started=datetime(2026, 1, 15, tzinfo=timezone.utc))
        mock_topologist.get_status.return_value = session

        result = runner.invoke(main, ["export"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "session_id": "s-1",
            "started": "2026-01-15T00:00:00+00:00",
            "phases": [],
        }
