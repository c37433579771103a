"""
Tests for CSV import/export of budget items and processes.

Rows are applied one by one; a failing row is reported and the rest of
the file still goes through.
"""
import io
import pytest
from datetime import date

from budget_planner.domain.entities import ApprovalStatus
from budget_planner.domain.services import BudgetItemService, CsvImportService, ProcessService
from budget_planner.domain.exceptions import ScopeNotFoundError, ValidationError

MONTHS = "Jan,Feb,Mar,Apr,May,Jun,Jul,Aug,Sep,Oct,Nov,Dec"
BUDGET_HEADER = f"ItemId,Department,Group,Item,Status,{MONTHS}\n"
PROCESS_HEADER = "WBS,Name,Start,End\n"


def budget_csv(*rows):
    return io.StringIO(BUDGET_HEADER + "".join(row + "\n" for row in rows))


def process_csv(*rows):
    return io.StringIO(PROCESS_HEADER + "".join(row + "\n" for row in rows))


def months(*values):
    padded = list(values) + [""] * (12 - len(values))
    return ",".join(str(value) for value in padded)


@pytest.fixture
def importer(session):
    return CsvImportService(session)


class TestBudgetImport:

    def test_creates_items_by_department_and_group(self, importer, session, scope):
        result = importer.import_budget_items(
            budget_csv(f",finance, OFFICE ,Rent,draft,{months(100, 100)}"),
            year=2025,
        )

        assert result.success_count == 1
        assert result.created_count == 1
        assert result.error_count == 0

        items = BudgetItemService(session).list_budget_items(scope.cost_group.id, 2025)
        assert len(items) == 1
        assert items[0].name == "Rent"
        assert items[0].status == ApprovalStatus.DRAFT
        assert items[0].monthly_values == {month: (100 if month < 2 else 0) for month in range(12)}

    def test_updates_item_by_id(self, importer, session, scope):
        service = BudgetItemService(session)
        item = service.create(name="Rent", year=2025, cost_group_id=scope.cost_group.id,
                              monthly_values={0: 1})

        result = importer.import_budget_items(
            budget_csv(f"{item.id},Finance,Office,Rent,draft,{months(5, 6, 7)}")
        )

        assert result.updated_count == 1
        assert service.get(item.id).monthly_values[2] == 7

    def test_bad_rows_do_not_stop_the_file(self, importer, session, scope):
        service = BudgetItemService(session)
        locked = service.create(name="Locked", year=2025, cost_group_id=scope.cost_group.id)
        service.submit_for_approval(locked.id)

        result = importer.import_budget_items(budget_csv(
            f",Finance,Office,Travel,,{months(10)}",
            f",Sales,Office,Unknown department,,{months(10)}",
            f",Finance,Office,Negative,,{months(-5)}",
            f"{locked.id},Finance,Office,Locked,pending,{months(1)}",
            f",Finance,Office,Licences,,{months(0, 20)}",
        ), year=2025)

        assert result.success_count == 2
        assert result.error_count == 3
        assert [error.split(":")[0] for error in result.errors] == ["Row 3", "Row 4", "Row 5"]
        names = sorted(i.name for i in service.list_budget_items(scope.cost_group.id, 2025))
        assert names == ["Licences", "Locked", "Travel"]
        assert service.get(locked.id).monthly_values == {}

    def test_nan_cell_is_a_row_error(self, importer, session, scope):
        result = importer.import_budget_items(budget_csv(
            f",Finance,Office,Broken,,{months(10, 'nan')}",
            f",Finance,Office,Rent,,{months(10)}",
        ), year=2025)

        assert result.success_count == 1
        assert result.error_count == 1
        assert result.errors[0].startswith("Row 2")
        assert "is not a number" in result.errors[0]
        names = [i.name for i in BudgetItemService(session).list_budget_items(scope.cost_group.id, 2025)]
        assert names == ["Rent"]

    def test_missing_columns(self, importer, scope):
        with pytest.raises(ValidationError):
            importer.import_budget_items(io.StringIO("Item,Jan\nRent,1\n"))

    def test_export(self, importer, session, scope):
        service = BudgetItemService(session)
        service.create(name="Rent", year=2025, cost_group_id=scope.cost_group.id,
                       monthly_values={0: 100, 11: 5})
        service.create(name="Fee", year=2025, project_phase_id=scope.phase.id,
                       monthly_values={0: 1})

        buffer = io.StringIO()
        df = importer.export_budget_items(2025, buffer)

        assert list(df.columns[:5]) == ["ItemId", "Department", "Group", "Item", "Status"]
        assert list(df.columns[5:]) == MONTHS.split(",")
        assert len(df) == 1
        row = df.iloc[0]
        assert row["Department"] == "Finance"
        assert row["Group"] == "Office"
        assert row["Jan"] == 100
        assert row["Dec"] == 5
        assert buffer.getvalue().startswith("ItemId,Department,Group,Item,Status,Jan")


class TestProcessImport:

    def test_creates_and_updates(self, importer, session, scope):
        processes = ProcessService(session)
        existing = processes.create(scope.project.id, "1", "Old name", date(2025, 1, 1), date(2025, 1, 5))

        result = importer.import_processes(process_csv(
            "1,Design,2025-01-01,2025-01-10",
            "1.1,Sketches,2025-01-01,2025-01-04",
        ), scope.project.id)

        assert result.created_count == 1
        assert result.updated_count == 1
        updated = processes.get(existing.id)
        assert updated.name == "Design"
        assert updated.end_date == date(2025, 1, 10)
        assert [p.wbs for p in processes.list_processes(scope.project.id)] == ["1", "1.1"]

    def test_row_errors(self, importer, session, scope):
        result = importer.import_processes(process_csv(
            "1,Design,2025-01-01,2025-01-10",
            "2,Bad date,01/02/2025,2025-01-10",
            "3,Inverted,2025-02-01,2025-01-10",
            "x.1,Bad key,2025-01-01,2025-01-10",
        ), scope.project.id)

        assert result.success_count == 1
        assert result.error_count == 3
        assert result.errors[0].startswith("Row 3")

    def test_unknown_project(self, importer, scope):
        with pytest.raises(ScopeNotFoundError):
            importer.import_processes(process_csv("1,Design,2025-01-01,2025-01-10"), "missing")

    def test_export_includes_rollup(self, importer, session, scope):
        processes = ProcessService(session)
        processes.create(scope.project.id, "1", "Build", date(2025, 1, 1), date(2025, 1, 1))
        processes.create(scope.project.id, "1.1", "Dig", date(2025, 2, 1), date(2025, 2, 10))

        df = importer.export_processes(scope.project.id)

        assert list(df["WBS"]) == ["1", "1.1"]
        group = df.iloc[0]
        assert bool(group["Group"]) is True
        assert group["Calculated Start"] == "2025-02-01"
        assert group["Calculated End"] == "2025-02-10"
        assert df.iloc[1]["Level"] == 1
