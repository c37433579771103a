"""
Budget Item API Endpoints - Lifecycle operations for budget items.

Implements:
- POST /api/v1/budget-items - Create a draft item
- GET /api/v1/budget-items?scope_id&year - List items of a cost group or phase
- GET /api/v1/budget-items/{id} - Get item with history
- PATCH /api/v1/budget-items/{id} - Save monthly values (draft only)
- POST /api/v1/budget-items/{id}/{submit|approve|withdraw|reject|revise|revert}
- DELETE /api/v1/budget-items/{id} - Hard delete
"""
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from budget_planner.models import get_db
from budget_planner.domain.services import BudgetItemService, monthly_totals, grand_total
from budget_planner.domain.exceptions import DomainError
from .errors import http_error, no_op_error

router = APIRouter()


# =============================================================================
# Pydantic Models
# =============================================================================

class BudgetItemCreate(BaseModel):
    """Request model for creating a budget item."""
    name: str = Field(..., min_length=1, max_length=500, description="Item name")
    item_type: str = Field("cost", pattern="^(cost|revenue)$", description="cost or revenue")
    year: Optional[int] = Field(None, ge=1900, le=9999, description="Budget year")
    cost_group_id: Optional[str] = Field(None, description="Parent cost group (department budget)")
    project_phase_id: Optional[str] = Field(None, description="Parent phase (project budget)")
    monthly_values: Dict[int, int] = Field(default_factory=dict, description="Month index (0-11) -> amount")
    sort_order: int = Field(0, ge=0)


class BudgetItemSave(BaseModel):
    """Request model for saving monthly values."""
    monthly_values: Dict[int, int] = Field(..., description="Full month map; missing months become 0")
    expected_version: Optional[int] = Field(None, description="Reject if the item changed since read")


class TransitionRequest(BaseModel):
    """Optional body for lifecycle transitions."""
    expected_version: Optional[int] = None


class ReviseRequest(BaseModel):
    """Request model for re-opening an approved item."""
    editor_name: Optional[str] = Field(None, max_length=200)
    revision_reason: Optional[str] = None
    expected_version: Optional[int] = None


class BudgetRevisionResponse(BaseModel):
    id: Optional[str]
    revision_number: int
    monthly_values: Dict[int, int]
    editor_name: str
    revision_reason: Optional[str]
    created_at: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class BudgetItemResponse(BaseModel):
    """Response model for a budget item with its history."""
    id: str
    name: str
    item_type: str
    cost_group_id: Optional[str]
    project_phase_id: Optional[str]
    year: int
    monthly_values: Dict[int, int]
    previous_approved_values: Optional[Dict[int, int]]
    status: str
    current_revision: int
    total: int
    version_id: int
    updated_at: Optional[str]
    history: List[BudgetRevisionResponse]

    model_config = ConfigDict(from_attributes=True)


class BudgetItemListResponse(BaseModel):
    """Response for listing budget items of one scope."""
    items: List[BudgetItemResponse]
    total: int
    monthly_totals: List[int]
    grand_total: int


# =============================================================================
# Endpoints
# =============================================================================

@router.post(
    "",
    response_model=BudgetItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a budget item",
    description="Create a draft item under exactly one cost group or project phase."
)
def create_budget_item(item_data: BudgetItemCreate, db: Session = Depends(get_db)):
    service = BudgetItemService(db)
    try:
        item = service.create(
            name=item_data.name,
            year=item_data.year,
            item_type=item_data.item_type,
            cost_group_id=item_data.cost_group_id,
            project_phase_id=item_data.project_phase_id,
            monthly_values=item_data.monthly_values,
            sort_order=item_data.sort_order,
        )
    except DomainError as e:
        raise http_error(e)
    return item.to_dict()


@router.get(
    "",
    response_model=BudgetItemListResponse,
    summary="List budget items",
    description="Items of a cost group or project phase for a year, with monthly totals"
)
def list_budget_items(
    scope_id: str = Query(..., description="Cost group or project phase id"),
    year: int = Query(..., ge=1900, le=9999),
    db: Session = Depends(get_db)
):
    items = BudgetItemService(db).list_budget_items(scope_id, year)
    return {
        'items': [item.to_dict() for item in items],
        'total': len(items),
        'monthly_totals': monthly_totals(items),
        'grand_total': grand_total(items),
    }


@router.get(
    "/{item_id}",
    response_model=BudgetItemResponse,
    summary="Get budget item by ID"
)
def get_budget_item(item_id: str, db: Session = Depends(get_db)):
    try:
        return BudgetItemService(db).get(item_id).to_dict()
    except DomainError as e:
        raise http_error(e)


@router.patch(
    "/{item_id}",
    response_model=BudgetItemResponse,
    summary="Save monthly values",
    description="Replace the monthly values of a draft item."
)
def save_budget_item(item_id: str, save_data: BudgetItemSave, db: Session = Depends(get_db)):
    try:
        item = BudgetItemService(db).save(
            item_id, save_data.monthly_values, expected_version=save_data.expected_version
        )
    except DomainError as e:
        raise http_error(e)
    return item.to_dict()


@router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a budget item"
)
def delete_budget_item(item_id: str, db: Session = Depends(get_db)):
    try:
        BudgetItemService(db).delete(item_id)
    except DomainError as e:
        raise http_error(e)


# =============================================================================
# Lifecycle transitions
# =============================================================================

def _version(request: Optional[TransitionRequest]) -> Optional[int]:
    return request.expected_version if request else None


@router.post("/{item_id}/submit", response_model=BudgetItemResponse, summary="Submit for approval")
def submit_budget_item(
    item_id: str,
    request: Optional[TransitionRequest] = None,
    db: Session = Depends(get_db)
):
    try:
        return BudgetItemService(db).submit_for_approval(item_id, _version(request)).to_dict()
    except DomainError as e:
        raise http_error(e)


@router.post("/{item_id}/approve", response_model=BudgetItemResponse, summary="Approve a pending item")
def approve_budget_item(
    item_id: str,
    request: Optional[TransitionRequest] = None,
    db: Session = Depends(get_db)
):
    try:
        return BudgetItemService(db).approve(item_id, _version(request)).to_dict()
    except DomainError as e:
        raise http_error(e)


@router.post("/{item_id}/withdraw", response_model=BudgetItemResponse, summary="Withdraw a pending item")
def withdraw_budget_item(
    item_id: str,
    request: Optional[TransitionRequest] = None,
    db: Session = Depends(get_db)
):
    try:
        return BudgetItemService(db).withdraw(item_id, _version(request)).to_dict()
    except DomainError as e:
        raise http_error(e)


@router.post(
    "/{item_id}/reject",
    response_model=BudgetItemResponse,
    summary="Reject a pending item",
    description="Restores the previous approved values when a revision is open, else returns to draft."
)
def reject_budget_item(
    item_id: str,
    request: Optional[TransitionRequest] = None,
    db: Session = Depends(get_db)
):
    try:
        item = BudgetItemService(db).reject(item_id, _version(request))
    except DomainError as e:
        raise http_error(e)
    if item is None:
        raise no_op_error("Budget item", "reject")
    return item.to_dict()


@router.post(
    "/{item_id}/revise",
    response_model=BudgetItemResponse,
    summary="Revise an approved item",
    description="Logs the approved values in history and re-opens the item as draft."
)
def revise_budget_item(
    item_id: str,
    request: Optional[ReviseRequest] = None,
    db: Session = Depends(get_db)
):
    request = request or ReviseRequest()
    try:
        item = BudgetItemService(db).revise(
            item_id,
            editor_name=request.editor_name,
            revision_reason=request.revision_reason,
            expected_version=request.expected_version,
        )
    except DomainError as e:
        raise http_error(e)
    return item.to_dict()


@router.post(
    "/{item_id}/revert",
    response_model=BudgetItemResponse,
    summary="Revert to the previous approved values"
)
def revert_budget_item(
    item_id: str,
    request: Optional[TransitionRequest] = None,
    db: Session = Depends(get_db)
):
    try:
        item = BudgetItemService(db).revert(item_id, _version(request))
    except DomainError as e:
        raise http_error(e)
    if item is None:
        raise no_op_error("Budget item", "revert")
    return item.to_dict()
