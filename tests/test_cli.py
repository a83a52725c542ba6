"""
Tests for CLI module.
"""

from unittest.mock import MagicMock, patch

import pytest

from linear_to_shortcut_migrator.cli import _print_run_summary, main, parse_arguments
from linear_to_shortcut_migrator.config import MigrationConfig
from linear_to_shortcut_migrator.exceptions import ConfigurationError
from linear_to_shortcut_migrator.models import SummaryRecord
from linear_to_shortcut_migrator.orchestrator import MigrationResult, MigrationStats
from linear_to_shortcut_migrator.teams import TeamMapping


@pytest.mark.unit
class TestParseArguments:
    def test_defaults(self) -> None:
        args = parse_arguments([])
        assert not args.test_mode
        assert args.test_limit is None
        assert args.team_map is None
        assert args.delay is None

    def test_repeatable_options(self) -> None:
        args = parse_arguments(["-m", "A:B", "-m", "C*:D*", "--skip-team", "X", "--skip-team", "Y"])
        assert args.team_map == ["A:B", "C*:D*"]
        assert args.skip_team == ["X", "Y"]


@pytest.mark.unit
class TestPrintRunSummary:
    """Test run summary printing."""

    def test_counts_and_records(self, capsys: pytest.CaptureFixture[str]) -> None:
        stats = MigrationStats(teams_migrated=1, stories_created=2, stories_skipped=1, links_created=1)
        stats.created_stories.append(SummaryRecord(7, "Fix login", "https://app.shortcut.com/story/7", "ENG-1"))
        stats.design_tickets.append(
            SummaryRecord(8, "Mockups", "https://app.shortcut.com/story/8", "ENG-2", {"action": "created_in_design"})
        )
        result = MigrationResult(success=True, stats=stats, teams=[TeamMapping("l1", "Education", "g1", "Edu")])

        _print_run_summary(result)
        out = capsys.readouterr().out

        assert "Teams migrated: 1 of 1" in out
        assert "Stories: 2 created, 1 skipped (duplicates), 0 errors" in out
        assert 'ENG-1 -> #7: "Fix login"' in out
        assert "URL: https://app.shortcut.com/story/7" in out
        assert "(action: created_in_design)" in out
        assert "Updated epics" not in out

    def test_errors_listed(self, capsys: pytest.CaptureFixture[str]) -> None:
        stats = MigrationStats(errors=["Issue ENG-3: Could not map status: Limbo"])

        _print_run_summary(MigrationResult(success=False, stats=stats))

        assert "Errors (1):" in capsys.readouterr().out


@pytest.mark.unit
class TestMain:
    """Test the entry point's wiring and exit codes."""

    def _run(self, argv: list[str], result: MigrationResult) -> tuple[int | str | None, MagicMock]:
        config = MigrationConfig(linear_token="lin", shortcut_token="sc")
        with (
            patch("linear_to_shortcut_migrator.cli.setup_logging"),
            patch("linear_to_shortcut_migrator.cli.load_config", return_value=config) as load_config,
            patch("linear_to_shortcut_migrator.cli.linear_utils.get_client") as linear_client,
            patch("linear_to_shortcut_migrator.cli.shortcut_utils.get_client") as shortcut_client,
            patch("linear_to_shortcut_migrator.cli.Migrator") as mock_migrator,
        ):
            mock_migrator.return_value.migrate.return_value = result
            with pytest.raises(SystemExit) as exc_info:
                main(argv)

            linear_client.assert_called_once_with("lin")
            shortcut_client.assert_called_once_with("sc")
            mock_migrator.assert_called_once_with(linear_client.return_value, shortcut_client.return_value, config)
            return exc_info.value.code, load_config

    def test_success_exits_zero(self) -> None:
        code, load_config = self._run(["--test-mode"], MigrationResult(success=True, stats=MigrationStats()))

        assert code == 0
        (args,), _ = load_config.call_args
        assert args.test_mode

    def test_failed_run_exits_one(self) -> None:
        code, _ = self._run([], MigrationResult(success=False, stats=MigrationStats(failed_teams=["Education"])))
        assert code == 1

    def test_configuration_error_exits_one(self) -> None:
        with (
            patch("linear_to_shortcut_migrator.cli.setup_logging"),
            patch("linear_to_shortcut_migrator.cli.load_config", side_effect=ConfigurationError("no token")),
            patch("linear_to_shortcut_migrator.cli.Migrator") as mock_migrator,
            pytest.raises(SystemExit) as exc_info,
        ):
            main([])

        assert exc_info.value.code == 1
        mock_migrator.assert_not_called()
