"""
Tests for the CSV data commands of the CLI.
"""
import pytest
from unittest.mock import patch

from click.testing import CliRunner
from sqlalchemy.orm import sessionmaker

from cli import cli
from budget_planner.domain.services import BudgetItemService


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_session(engine):
    """Point the commands at the test database."""
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    with patch("budget_planner.cli.data_commands.SessionLocal", factory):
        yield


class TestBudgetCommands:

    def test_import_budget(self, runner, cli_session, scope, session, tmp_path):
        csv_path = tmp_path / "budget.csv"
        csv_path.write_text(
            "ItemId,Department,Group,Item,Status,Jan,Feb,Mar,Apr,May,Jun,Jul,Aug,Sep,Oct,Nov,Dec\n"
            ",Finance,Office,Rent,,100,100,100,100,100,100,100,100,100,100,100,100\n"
            ",Nowhere,Office,Lost,,1,,,,,,,,,,,\n"
        )

        result = runner.invoke(cli, ["import-budget", str(csv_path), "--year", "2025"])

        assert result.exit_code == 0, result.output
        assert "Applied: 1" in result.output
        assert "Row 3" in result.output
        items = BudgetItemService(session).list_budget_items(scope.cost_group.id, 2025)
        assert [item.total for item in items] == [1200]

    def test_export_budget(self, runner, cli_session, scope, session, tmp_path):
        BudgetItemService(session).create(
            name="Rent", year=2025, cost_group_id=scope.cost_group.id, monthly_values={0: 10}
        )
        csv_path = tmp_path / "out.csv"

        result = runner.invoke(cli, ["export-budget", str(csv_path), "--year", "2025"])

        assert result.exit_code == 0, result.output
        lines = csv_path.read_text().splitlines()
        assert lines[0].startswith("ItemId,Department,Group,Item,Status,Jan")
        assert len(lines) == 2


class TestProcessCommands:

    def test_import_processes(self, runner, cli_session, scope, tmp_path):
        csv_path = tmp_path / "schedule.csv"
        csv_path.write_text(
            "WBS,Name,Start,End\n"
            "1,Design,2025-01-01,2025-01-31\n"
            "1.1,Sketches,2025-01-01,2025-01-10\n"
        )

        result = runner.invoke(
            cli, ["import-processes", str(csv_path), "--project-id", scope.project.id]
        )

        assert result.exit_code == 0, result.output
        assert "created 2" in result.output

    def test_import_processes_unknown_project(self, runner, cli_session, scope, tmp_path):
        csv_path = tmp_path / "schedule.csv"
        csv_path.write_text("WBS,Name,Start,End\n1,Design,2025-01-01,2025-01-31\n")

        result = runner.invoke(cli, ["import-processes", str(csv_path), "--project-id", "missing"])

        assert result.exit_code != 0
        assert "not found" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "Budget Planner" in result.output
