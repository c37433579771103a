"""
Process API Endpoints - Project schedule (WBS) operations.

Implements:
- POST /api/v1/projects/{project_id}/processes - Create a process
- GET /api/v1/projects/{project_id}/processes - List in WBS order
- GET /api/v1/projects/{project_id}/processes/tree - Tree rows with rollups
- PATCH /api/v1/processes/{id} - Edit name/WBS/dates (WBS change cascades)
- POST /api/v1/processes/{id}/{submit|approve|withdraw|reject|start|finish|revise|revert}
- DELETE /api/v1/processes/{id}
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from budget_planner.models import get_db
from budget_planner.domain.services import ProcessService
from budget_planner.domain.exceptions import DomainError
from .errors import http_error, no_op_error

router = APIRouter()


# =============================================================================
# Pydantic Models
# =============================================================================

class ProcessCreate(BaseModel):
    """Request model for creating a process."""
    wbs: str = Field(..., min_length=1, max_length=50, description="Dot-separated key like 1.2.3")
    name: str = Field(..., min_length=1, max_length=500)
    start_date: date
    end_date: date


class ProcessUpdate(BaseModel):
    """Request model for editing a process. Omitted fields are unchanged."""
    name: Optional[str] = Field(None, min_length=1, max_length=500)
    wbs: Optional[str] = Field(None, min_length=1, max_length=50)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    expected_version: Optional[int] = None


class TransitionRequest(BaseModel):
    expected_version: Optional[int] = None


class ReviseRequest(BaseModel):
    editor_name: Optional[str] = Field(None, max_length=200)
    revision_reason: Optional[str] = None
    expected_version: Optional[int] = None


class ProcessRevisionResponse(BaseModel):
    id: Optional[str]
    revision_number: int
    start_date: str
    end_date: str
    editor_name: str
    revision_reason: Optional[str]
    created_at: Optional[str]


class ProcessResponse(BaseModel):
    """Response model for a process with its history."""
    id: str
    project_id: str
    wbs: str
    name: str
    start_date: Optional[str]
    end_date: Optional[str]
    actual_start_date: Optional[str]
    actual_end_date: Optional[str]
    status: str
    current_revision: int
    previous_start_date: Optional[str]
    previous_end_date: Optional[str]
    version_id: int
    history: List[ProcessRevisionResponse]

    model_config = ConfigDict(from_attributes=True)


class ProcessTreeRow(ProcessResponse):
    """Process placed in the WBS tree; groups carry rolled-up dates."""
    level: int
    is_group: bool
    calculated_start_date: Optional[str]
    calculated_end_date: Optional[str]
    calculated_days: Optional[int]


# =============================================================================
# Project-scoped endpoints
# =============================================================================

@router.post(
    "/projects/{project_id}/processes",
    response_model=ProcessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a process",
    description="Create a draft process. The WBS must be unique within the project."
)
def create_process(project_id: str, process_data: ProcessCreate, db: Session = Depends(get_db)):
    try:
        process = ProcessService(db).create(
            project_id=project_id,
            wbs=process_data.wbs,
            name=process_data.name,
            start_date=process_data.start_date,
            end_date=process_data.end_date,
        )
    except DomainError as e:
        raise http_error(e)
    return process.to_dict()


@router.get(
    "/projects/{project_id}/processes",
    response_model=List[ProcessResponse],
    summary="List processes in WBS order"
)
def list_processes(project_id: str, db: Session = Depends(get_db)):
    return [process.to_dict() for process in ProcessService(db).list_processes(project_id)]


@router.get(
    "/projects/{project_id}/processes/tree",
    response_model=List[ProcessTreeRow],
    summary="WBS tree",
    description="Pre-order tree rows with level, group flag and rolled-up group dates"
)
def get_process_tree(project_id: str, db: Session = Depends(get_db)):
    return [node.to_dict() for node in ProcessService(db).get_tree(project_id)]


# =============================================================================
# Process endpoints
# =============================================================================

@router.get("/processes/{process_id}", response_model=ProcessResponse, summary="Get process by ID")
def get_process(process_id: str, db: Session = Depends(get_db)):
    try:
        return ProcessService(db).get(process_id).to_dict()
    except DomainError as e:
        raise http_error(e)


@router.patch(
    "/processes/{process_id}",
    response_model=ProcessResponse,
    summary="Edit a process",
    description="Name and WBS may change in any state; dates only while draft. "
                "A WBS change moves every descendant."
)
def update_process(process_id: str, update_data: ProcessUpdate, db: Session = Depends(get_db)):
    try:
        process = ProcessService(db).update(
            process_id,
            name=update_data.name,
            wbs=update_data.wbs,
            start_date=update_data.start_date,
            end_date=update_data.end_date,
            expected_version=update_data.expected_version,
        )
    except DomainError as e:
        raise http_error(e)
    return process.to_dict()


@router.delete("/processes/{process_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a process")
def delete_process(process_id: str, db: Session = Depends(get_db)):
    try:
        ProcessService(db).delete(process_id)
    except DomainError as e:
        raise http_error(e)


# =============================================================================
# Lifecycle transitions
# =============================================================================

def _version(request: Optional[TransitionRequest]) -> Optional[int]:
    return request.expected_version if request else None


@router.post("/processes/{process_id}/submit", response_model=ProcessResponse, summary="Submit for approval")
def submit_process(
    process_id: str,
    request: Optional[TransitionRequest] = None,
    db: Session = Depends(get_db)
):
    try:
        return ProcessService(db).submit_for_approval(process_id, _version(request)).to_dict()
    except DomainError as e:
        raise http_error(e)


@router.post("/processes/{process_id}/approve", response_model=ProcessResponse, summary="Approve")
def approve_process(
    process_id: str,
    request: Optional[TransitionRequest] = None,
    db: Session = Depends(get_db)
):
    try:
        return ProcessService(db).approve(process_id, _version(request)).to_dict()
    except DomainError as e:
        raise http_error(e)


@router.post("/processes/{process_id}/withdraw", response_model=ProcessResponse, summary="Withdraw")
def withdraw_process(
    process_id: str,
    request: Optional[TransitionRequest] = None,
    db: Session = Depends(get_db)
):
    try:
        return ProcessService(db).withdraw(process_id, _version(request)).to_dict()
    except DomainError as e:
        raise http_error(e)


@router.post("/processes/{process_id}/reject", response_model=ProcessResponse, summary="Reject")
def reject_process(
    process_id: str,
    request: Optional[TransitionRequest] = None,
    db: Session = Depends(get_db)
):
    try:
        process = ProcessService(db).reject(process_id, _version(request))
    except DomainError as e:
        raise http_error(e)
    if process is None:
        raise no_op_error("Process", "reject")
    return process.to_dict()


@router.post("/processes/{process_id}/start", response_model=ProcessResponse, summary="Record actual start")
def start_process(process_id: str, db: Session = Depends(get_db)):
    try:
        return ProcessService(db).start(process_id).to_dict()
    except DomainError as e:
        raise http_error(e)


@router.post("/processes/{process_id}/finish", response_model=ProcessResponse, summary="Record actual finish")
def finish_process(process_id: str, db: Session = Depends(get_db)):
    try:
        return ProcessService(db).finish(process_id).to_dict()
    except DomainError as e:
        raise http_error(e)


@router.post("/processes/{process_id}/revise", response_model=ProcessResponse, summary="Revise approved dates")
def revise_process(
    process_id: str,
    request: Optional[ReviseRequest] = None,
    db: Session = Depends(get_db)
):
    request = request or ReviseRequest()
    try:
        process = ProcessService(db).revise(
            process_id,
            editor_name=request.editor_name,
            revision_reason=request.revision_reason,
            expected_version=request.expected_version,
        )
    except DomainError as e:
        raise http_error(e)
    return process.to_dict()


@router.post("/processes/{process_id}/revert", response_model=ProcessResponse, summary="Revert to approved dates")
def revert_process(
    process_id: str,
    request: Optional[TransitionRequest] = None,
    db: Session = Depends(get_db)
):
    try:
        process = ProcessService(db).revert(process_id, _version(request))
    except DomainError as e:
        raise http_error(e)
    if process is None:
        raise no_op_error("Process", "revert")
    return process.to_dict()
