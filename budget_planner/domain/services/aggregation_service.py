"""
Aggregation Service - Read-side derivations for reports and the Gantt view.

Implements:
- Monthly totals over budget items (missing months count as 0)
- Hierarchical subtotals: cost group -> department -> department group,
  project phase -> project
- Actuals: transaction cents bucketed per month, converted to currency
  units only here
- Gantt window and bar positions
"""
import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd
from sqlalchemy.orm import Session

from budget_planner.config import BudgetPlannerConfig, get_config
from budget_planner.models import CostGroup, Department, DepartmentGroup, Project, ProjectPhase
from budget_planner.infrastructure.repositories import (
    BudgetItemRepository,
    ProcessRepository,
    TransactionRepository,
)
from budget_planner.domain.entities import BudgetItem, BudgetItemType, ProjectProcess
from budget_planner.domain.entities.budget_item import MONTHS_PER_YEAR
from budget_planner.domain.exceptions import ScopeNotFoundError
from .wbs_tree_service import build_wbs_rows

logger = logging.getLogger(__name__)

ValuesOrItem = Union[BudgetItem, Mapping[int, int]]


# =============================================================================
# Pure derivations
# =============================================================================

def _values_of(entry: ValuesOrItem) -> Mapping[int, int]:
    return entry.monthly_values if isinstance(entry, BudgetItem) else entry


def monthly_totals(items: Iterable[ValuesOrItem], months: int = MONTHS_PER_YEAR) -> List[int]:
    """Element-wise sum per month index; missing months count as 0."""
    totals = [0] * months
    for entry in items:
        values = _values_of(entry)
        for month in range(months):
            totals[month] += values.get(month, 0)
    return totals


def item_total(values: Mapping[int, int]) -> int:
    return sum(values.get(month, 0) for month in range(MONTHS_PER_YEAR))


def grand_total(items: Iterable[ValuesOrItem]) -> int:
    return sum(item_total(_values_of(entry)) for entry in items)


def cents_to_units(cents: int, minor_units: int = 100) -> float:
    """Convert stored transaction cents to currency units for display."""
    return cents / minor_units


def _summary(items: List[BudgetItem]) -> dict:
    costs = [item for item in items if item.item_type == BudgetItemType.COST]
    revenues = [item for item in items if item.item_type == BudgetItemType.REVENUE]
    cost_total = grand_total(costs)
    revenue_total = grand_total(revenues)
    return {
        'monthly_costs': monthly_totals(costs),
        'monthly_revenues': monthly_totals(revenues),
        'cost_total': cost_total,
        'revenue_total': revenue_total,
        'net_total': revenue_total - cost_total,
    }


@dataclass
class GanttWindow:
    """Visible date range of a Gantt chart, both ends inclusive."""
    start: date
    end: date

    @property
    def total_days(self) -> int:
        return (self.end - self.start).days + 1

    def to_dict(self) -> dict:
        return {
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'total_days': self.total_days,
        }


@dataclass
class BarPosition:
    left_percent: float
    width_percent: float

    def to_dict(self) -> dict:
        return {'left_percent': self.left_percent, 'width_percent': self.width_percent}


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def end_of_month(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def gantt_window(
    processes: Iterable[ProjectProcess],
    today: Optional[date] = None,
    empty_window_days: int = 90,
) -> GanttWindow:
    """
    Month-aligned window around all planned dates.

    Without any dated process the window runs from the start of the
    current month to the end of the month empty_window_days ahead.
    """
    today = today or date.today()
    dates = []
    for process in processes:
        if process.start_date is not None:
            dates.append(_as_date(process.start_date))
        if process.end_date is not None:
            dates.append(_as_date(process.end_date))

    if not dates:
        return GanttWindow(
            start=start_of_month(today),
            end=end_of_month(today + timedelta(days=empty_window_days)),
        )
    return GanttWindow(start=start_of_month(min(dates)), end=end_of_month(max(dates)))


def bar_position(window: GanttWindow, start: date, end: date) -> BarPosition:
    """Horizontal placement of a bar as percentages of the window."""
    start, end = _as_date(start), _as_date(end)
    total = window.total_days
    return BarPosition(
        left_percent=(start - window.start).days / total * 100,
        width_percent=((end - start).days + 1) / total * 100,
    )


@dataclass
class ActualBar:
    start: date
    end: date
    in_progress: bool

    def to_dict(self) -> dict:
        return {
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'in_progress': self.in_progress,
        }


def actual_bar(process: ProjectProcess, today: Optional[date] = None) -> Optional[ActualBar]:
    """
    Actual progress bar of a started process.

    An unfinished process runs to today while today is before its planned
    end, and to the planned end afterwards.
    """
    if process.actual_start_date is None:
        return None

    today = today or date.today()
    start = _as_date(process.actual_start_date)
    if process.actual_end_date is not None:
        end = _as_date(process.actual_end_date)
    elif process.end_date is not None and today >= process.end_date:
        end = process.end_date
    else:
        end = today

    return ActualBar(start=start, end=max(start, end), in_progress=process.actual_end_date is None)


# =============================================================================
# Service
# =============================================================================

class AggregationService:
    """
    Service for report aggregation.

    Budget values are whole currency units; transaction amounts are cents
    and are converted with cents_to_units before they leave this service.
    """

    def __init__(self, session: Session, config: Optional[BudgetPlannerConfig] = None):
        self.session = session
        self.config = config or get_config()
        self.item_repo = BudgetItemRepository(session)
        self.process_repo = ProcessRepository(session)
        self.transaction_repo = TransactionRepository(session)

    def monthly_totals(self, items: Iterable[ValuesOrItem]) -> List[int]:
        return monthly_totals(items, self.config.months_per_year)

    # =========================================================================
    # Department budgets
    # =========================================================================

    def department_summary(self, year: int) -> dict:
        """
        Department budget tree for a year with subtotals at every level.

        Returns:
            Dict with department groups -> departments -> cost groups -> items
        """
        items_by_group: Dict[str, List[BudgetItem]] = {}
        for item in self.item_repo.list_department_items(year):
            items_by_group.setdefault(item.cost_group_id, []).append(item)

        departments = self.session.query(Department).order_by(
            Department.sort_order, Department.name
        ).all()
        groups = {
            group.id: group
            for group in self.session.query(DepartmentGroup).all()
        }

        buckets: Dict[Optional[str], List[dict]] = {}
        all_items: List[BudgetItem] = []
        for department in departments:
            cost_groups = []
            department_items: List[BudgetItem] = []
            for cost_group in sorted(department.cost_groups, key=lambda g: (g.sort_order, g.name)):
                items = sorted(items_by_group.get(cost_group.id, []), key=lambda i: i.sort_order)
                department_items.extend(items)
                cost_groups.append({
                    'id': cost_group.id,
                    'name': cost_group.name,
                    'items': [item.to_dict() for item in items],
                    **_summary(items),
                })
            all_items.extend(department_items)
            buckets.setdefault(department.group_id, []).append({
                'id': department.id,
                'name': department.name,
                'department_items': department_items,
                'cost_groups': cost_groups,
                **_summary(department_items),
            })

        ordered_keys = sorted(
            buckets,
            key=lambda key: (key is None, groups[key].sort_order if key in groups else 0),
        )
        group_rows = []
        for key in ordered_keys:
            members = buckets[key]
            group_items = [item for member in members for item in member.pop('department_items')]
            group_rows.append({
                'id': key,
                'name': groups[key].name if key in groups else None,
                'departments': members,
                **_summary(group_items),
            })

        return {'year': year, 'groups': group_rows, **_summary(all_items)}

    # =========================================================================
    # Project budgets
    # =========================================================================

    def project_summary(self, project_id: str, year: int) -> dict:
        """
        Project budget for a year split into phases with cost/revenue totals.

        Raises:
            ScopeNotFoundError: If the project does not exist
        """
        project = self.session.get(Project, project_id)
        if not project:
            raise ScopeNotFoundError("Project", project_id)

        items = self.item_repo.list_by_project(project_id, year)
        items_by_phase: Dict[str, List[BudgetItem]] = {}
        for item in items:
            items_by_phase.setdefault(item.project_phase_id, []).append(item)

        phases = self.session.query(ProjectPhase).filter(
            ProjectPhase.project_id == project_id
        ).order_by(ProjectPhase.sort_order, ProjectPhase.name).all()

        return {
            'id': project.id,
            'code': project.code,
            'name': project.name,
            'year': year,
            'phases': [
                {
                    'id': phase.id,
                    'name': phase.name,
                    'items': [item.to_dict() for item in items_by_phase.get(phase.id, [])],
                    **_summary(items_by_phase.get(phase.id, [])),
                }
                for phase in phases
            ],
            **_summary(items),
        }

    # =========================================================================
    # Actuals
    # =========================================================================

    def actual_monthly_totals(self, year: int, transaction_type: str = "expense") -> List[float]:
        """
        Transactions of one type bucketed by month, in currency units.

        Args:
            year: Calendar year
            transaction_type: 'expense' or 'revenue'
        """
        rows = self.transaction_repo.get_by_year(year, transaction_type)
        months = self.config.months_per_year
        if not rows:
            return [0.0] * months

        df = pd.DataFrame([{'date': row.date, 'amount': row.amount} for row in rows])
        df['month'] = pd.to_datetime(df['date']).dt.month - 1
        by_month = df.groupby('month')['amount'].sum()

        divisor = self.config.minor_units_per_unit
        return [cents_to_units(int(by_month.get(month, 0)), divisor) for month in range(months)]

    def plan_vs_actual(self, item: BudgetItem) -> dict:
        """Planned total of one item against the transactions booked on it."""
        actual_cents = self.transaction_repo.get_total_by_budget_item(item.id)
        actual = cents_to_units(actual_cents, self.config.minor_units_per_unit)
        return {
            'budget_item_id': item.id,
            'planned': item.total,
            'actual': actual,
            'remaining': item.total - actual,
        }

    def dashboard_summary(self, year: int) -> dict:
        """Company-wide plan and actual totals for a year."""
        department_items = self.item_repo.list_department_items(year)
        project_items = self.item_repo.list_project_items(year)
        department = _summary(department_items)
        project = _summary(project_items)

        actual_expenses = self.actual_monthly_totals(year, "expense")
        actual_revenues = self.actual_monthly_totals(year, "revenue")

        planned_costs = [
            d + p for d, p in zip(department['monthly_costs'], project['monthly_costs'])
        ]
        planned_revenues = [
            d + p for d, p in zip(department['monthly_revenues'], project['monthly_revenues'])
        ]

        logger.info(
            f"Dashboard {year}: {len(department_items)} department items, "
            f"{len(project_items)} project items"
        )

        return {
            'year': year,
            'department_cost_total': department['cost_total'],
            'project_cost_total': project['cost_total'],
            'project_revenue_total': project['revenue_total'],
            'planned_cost_total': sum(planned_costs),
            'planned_revenue_total': sum(planned_revenues),
            'actual_expense_total': sum(actual_expenses),
            'actual_revenue_total': sum(actual_revenues),
            'monthly': [
                {
                    'month': month,
                    'planned_cost': planned_costs[month],
                    'planned_revenue': planned_revenues[month],
                    'actual_expense': actual_expenses[month],
                    'actual_revenue': actual_revenues[month],
                }
                for month in range(self.config.months_per_year)
            ],
        }

    # =========================================================================
    # Gantt
    # =========================================================================

    def gantt_rows(self, project_id: str, today: Optional[date] = None) -> dict:
        """
        Gantt chart rows for a project: the WBS tree with bar placements.

        Groups are drawn over their rolled-up dates.

        Raises:
            ScopeNotFoundError: If the project does not exist
        """
        if not self.session.get(Project, project_id):
            raise ScopeNotFoundError("Project", project_id)

        today = today or date.today()
        processes = self.process_repo.list_by_project(project_id)
        window = gantt_window(processes, today, self.config.empty_window_days)

        rows = []
        for node in build_wbs_rows(processes):
            row = node.to_dict()
            start, end = node.display_start_date, node.display_end_date
            row['bar'] = bar_position(window, start, end).to_dict() if start and end else None

            actual = actual_bar(node.process, today)
            if actual:
                row['actual_bar'] = {
                    **actual.to_dict(),
                    **bar_position(window, actual.start, actual.end).to_dict(),
                }
            else:
                row['actual_bar'] = None
            rows.append(row)

        return {'project_id': project_id, 'window': window.to_dict(), 'rows': rows}
