"""
CSV Import Service - Batch client for budget items and processes.

Files are read with pandas and applied row by row through the regular
services, so every row goes through the same validation and transitions
as a single edit. A failing row is counted and reported; the remaining
rows are still applied.

Budget file layout:
    ItemId, Department, Group, Item, Status, <12 month columns>
A row with an ItemId saves new values on that item; a row without one
creates a draft cost item under the matching department/group (names
compared case-insensitively). Status is informational and ignored.

Process file layout:
    WBS, Name, Start, End
A WBS already present in the project updates that process; otherwise a
new process is created.
"""
import calendar
import logging
from dataclasses import dataclass, field
from datetime import datetime, date
from typing import List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from budget_planner.config import BudgetPlannerConfig, get_config
from budget_planner.models import CostGroup, Project
from budget_planner.infrastructure.repositories import BudgetItemRepository, ProcessRepository
from budget_planner.domain.exceptions import DomainError, ScopeNotFoundError, ValidationError
from .budget_item_service import BudgetItemService
from .process_service import ProcessService

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Outcome of a best-effort batch import."""
    success_count: int = 0
    error_count: int = 0
    errors: List[str] = field(default_factory=list)
    created_count: int = 0
    updated_count: int = 0

    def record_error(self, row_number: int, message: str) -> None:
        self.error_count += 1
        self.errors.append(f"Row {row_number}: {message}")

    def to_dict(self) -> dict:
        return {
            'success_count': self.success_count,
            'error_count': self.error_count,
            'created_count': self.created_count,
            'updated_count': self.updated_count,
            'errors': list(self.errors),
        }


def _cell(row: pd.Series, column: str) -> str:
    value = row.get(column, "")
    return str(value).strip() if value is not None else ""


class CsvImportService:
    """Imports and exports budget items and processes as CSV."""

    def __init__(self, session: Session, config: Optional[BudgetPlannerConfig] = None):
        self.session = session
        self.config = config or get_config()
        self.items = BudgetItemService(session, self.config)
        self.processes = ProcessService(session, self.config)
        self.item_repo = BudgetItemRepository(session)
        self.process_repo = ProcessRepository(session)

    @property
    def month_headers(self) -> List[str]:
        return list(calendar.month_abbr)[1:self.config.months_per_year + 1]

    def _read(self, source) -> pd.DataFrame:
        df = pd.read_csv(source, dtype=str, keep_default_na=False, encoding=self.config.csv_encoding)
        df.columns = [str(column).strip() for column in df.columns]
        return df

    def _parse_date(self, value: str, column: str) -> date:
        if not value:
            raise ValidationError(column, "date is required")
        try:
            return datetime.strptime(value, self.config.csv_date_format).date()
        except ValueError:
            raise ValidationError(column, f"'{value}' does not match {self.config.csv_date_format}")

    # =========================================================================
    # Budget items
    # =========================================================================

    def import_budget_items(self, source, year: Optional[int] = None) -> ImportResult:
        """
        Apply a budget CSV.

        Args:
            source: Path or file-like object
            year: Year for newly created items (defaults to the configured year)

        Raises:
            ValidationError: If the file lacks the expected columns
        """
        year = year or self.config.default_year
        columns = self.config.budget_csv_columns
        df = self._read(source)

        required = [columns['department'], columns['group'], columns['item']]
        missing = [column for column in required if column not in df.columns]
        if missing:
            raise ValidationError("csv", f"missing columns: {', '.join(missing)}")

        month_columns = [column for column in df.columns if column not in columns.values()]
        months = self.config.months_per_year
        if len(month_columns) < months:
            raise ValidationError("csv", f"expected {months} month columns, found {len(month_columns)}")
        month_columns = month_columns[:months]

        result = ImportResult()
        for index, row in df.iterrows():
            row_number = index + 2  # header is line 1
            values = {month: _cell(row, column) for month, column in enumerate(month_columns)}
            item_id = _cell(row, columns['item_id'])

            try:
                if item_id:
                    self.items.save(item_id, values)
                    result.updated_count += 1
                else:
                    department = _cell(row, columns['department'])
                    group = _cell(row, columns['group'])
                    name = _cell(row, columns['item'])
                    if not (department and group and name):
                        raise ValidationError("row", "department, group and item are required")

                    cost_group = self.item_repo.find_cost_group(department, group)
                    if cost_group is None:
                        raise ScopeNotFoundError("Cost group", f"{department} / {group}")
                    self.items.create(
                        name=name,
                        year=year,
                        cost_group_id=cost_group.id,
                        monthly_values=values,
                    )
                    result.created_count += 1
                result.success_count += 1
            except DomainError as e:
                result.record_error(row_number, e.message)
                logger.warning(f"Budget import row {row_number} failed: {e.message}")

        logger.info(
            f"Budget import ({year}): {result.success_count} rows applied, "
            f"{result.error_count} errors"
        )
        return result

    def export_budget_items(self, year: int, destination=None) -> pd.DataFrame:
        """
        Department budget items for a year in import layout.

        Writes the CSV when destination is given; always returns the frame.
        """
        columns = self.config.budget_csv_columns
        cost_groups = {group.id: group for group in self.session.query(CostGroup).all()}

        records = []
        for item in self.item_repo.list_department_items(year):
            cost_group = cost_groups.get(item.cost_group_id)
            record = {
                columns['item_id']: item.id,
                columns['department']: cost_group.department.name if cost_group else "",
                columns['group']: cost_group.name if cost_group else "",
                columns['item']: item.name,
                columns['status']: item.status.value,
            }
            for month, header in enumerate(self.month_headers):
                record[header] = item.value_for(month)
            records.append(record)

        header = [
            columns['item_id'], columns['department'], columns['group'],
            columns['item'], columns['status'],
        ] + self.month_headers
        df = pd.DataFrame(records, columns=header)
        df = df.sort_values([columns['department'], columns['group'], columns['item']], kind="stable")

        if destination is not None:
            df.to_csv(destination, index=False, encoding=self.config.csv_encoding)
            logger.info(f"Exported {len(df)} budget items for {year}")
        return df

    # =========================================================================
    # Processes
    # =========================================================================

    def import_processes(self, source, project_id: str) -> ImportResult:
        """
        Apply a process CSV to one project.

        Raises:
            ScopeNotFoundError: If the project does not exist
            ValidationError: If the file lacks the expected columns
        """
        if not self.session.get(Project, project_id):
            raise ScopeNotFoundError("Project", project_id)

        columns = self.config.process_csv_columns
        df = self._read(source)
        missing = [column for column in columns.values() if column not in df.columns]
        if missing:
            raise ValidationError("csv", f"missing columns: {', '.join(missing)}")

        result = ImportResult()
        for index, row in df.iterrows():
            row_number = index + 2
            try:
                wbs = _cell(row, columns['wbs'])
                name = _cell(row, columns['name'])
                start_date = self._parse_date(_cell(row, columns['start_date']), columns['start_date'])
                end_date = self._parse_date(_cell(row, columns['end_date']), columns['end_date'])

                existing = self.process_repo.get_by_wbs(project_id, wbs) if wbs else None
                if existing:
                    self.processes.update(existing.id, name=name, start_date=start_date, end_date=end_date)
                    result.updated_count += 1
                else:
                    self.processes.create(project_id, wbs, name, start_date, end_date)
                    result.created_count += 1
                result.success_count += 1
            except DomainError as e:
                result.record_error(row_number, e.message)
                logger.warning(f"Process import row {row_number} failed: {e.message}")

        logger.info(
            f"Process import ({project_id}): {result.success_count} rows applied, "
            f"{result.error_count} errors"
        )
        return result

    def export_processes(self, project_id: str, destination=None) -> pd.DataFrame:
        """Project processes in WBS order with their derived tree fields."""
        columns = self.config.process_csv_columns
        records = []
        for node in self.processes.get_tree(project_id):
            process = node.process
            records.append({
                columns['wbs']: process.wbs,
                columns['name']: process.name,
                columns['start_date']: process.start_date.strftime(self.config.csv_date_format),
                columns['end_date']: process.end_date.strftime(self.config.csv_date_format),
                'Status': process.status.value,
                'Revision': process.current_revision,
                'Level': node.level,
                'Group': node.is_group,
                'Calculated Start': (
                    node.calculated_start_date.strftime(self.config.csv_date_format)
                    if node.calculated_start_date else ""
                ),
                'Calculated End': (
                    node.calculated_end_date.strftime(self.config.csv_date_format)
                    if node.calculated_end_date else ""
                ),
            })

        header = list(columns.values()) + [
            'Status', 'Revision', 'Level', 'Group', 'Calculated Start', 'Calculated End'
        ]
        df = pd.DataFrame(records, columns=header)

        if destination is not None:
            df.to_csv(destination, index=False, encoding=self.config.csv_encoding)
            logger.info(f"Exported {len(df)} processes for project {project_id}")
        return df
