"""
Report API Endpoints - Budget summaries and the project Gantt view.

Implements:
- GET /api/v1/reports/departments?year - Department budget tree with subtotals
- GET /api/v1/reports/projects/{id}?year - Project budget by phase
- GET /api/v1/reports/dashboard?year - Plan vs. actual totals
- GET /api/v1/reports/budget-items/{id}/plan-vs-actual - One item against its transactions
- GET /api/v1/reports/projects/{id}/gantt - Gantt rows and bar placements
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from budget_planner.config import get_config
from budget_planner.models import get_db
from budget_planner.domain.services import AggregationService, BudgetItemService
from budget_planner.domain.exceptions import DomainError
from .errors import http_error

router = APIRouter()


# =============================================================================
# Pydantic Models
# =============================================================================

class MonthlyDashboardRow(BaseModel):
    month: int
    planned_cost: int
    planned_revenue: int
    actual_expense: float
    actual_revenue: float


class DashboardResponse(BaseModel):
    """Company-wide plan vs. actual for one year."""
    year: int
    department_cost_total: int
    project_cost_total: int
    project_revenue_total: int
    planned_cost_total: int
    planned_revenue_total: int
    actual_expense_total: float
    actual_revenue_total: float
    monthly: List[MonthlyDashboardRow]


class PlanVsActualResponse(BaseModel):
    budget_item_id: str
    planned: int
    actual: float
    remaining: float


class GanttWindowResponse(BaseModel):
    start: str
    end: str
    total_days: int


class GanttResponse(BaseModel):
    project_id: str
    window: GanttWindowResponse
    rows: List[dict]


def _year(year: Optional[int]) -> int:
    return year or get_config().default_year


# =============================================================================
# Endpoints
# =============================================================================

@router.get(
    "/departments",
    summary="Department budget report",
    description="Department groups -> departments -> cost groups with monthly cost/revenue subtotals"
)
def department_report(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    db: Session = Depends(get_db)
):
    return AggregationService(db).department_summary(_year(year))


@router.get("/dashboard", response_model=DashboardResponse, summary="Plan vs. actual dashboard")
def dashboard_report(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    db: Session = Depends(get_db)
):
    return AggregationService(db).dashboard_summary(_year(year))


@router.get(
    "/budget-items/{item_id}/plan-vs-actual",
    response_model=PlanVsActualResponse,
    summary="Budget item plan vs. actual",
)
def plan_vs_actual_report(item_id: str, db: Session = Depends(get_db)):
    try:
        item = BudgetItemService(db).get(item_id)
        return AggregationService(db).plan_vs_actual(item)
    except DomainError as e:
        raise http_error(e)


@router.get("/projects/{project_id}", summary="Project budget report")
def project_report(
    project_id: str,
    year: Optional[int] = Query(None, ge=1900, le=9999),
    db: Session = Depends(get_db)
):
    try:
        return AggregationService(db).project_summary(project_id, _year(year))
    except DomainError as e:
        raise http_error(e)


@router.get(
    "/projects/{project_id}/gantt",
    response_model=GanttResponse,
    summary="Project Gantt rows",
    description="WBS tree rows with planned and actual bar positions as window percentages"
)
def gantt_report(
    project_id: str,
    today: Optional[date] = Query(None, description="Reference date (default: today)"),
    db: Session = Depends(get_db)
):
    try:
        return AggregationService(db).gantt_rows(project_id, today)
    except DomainError as e:
        raise http_error(e)
