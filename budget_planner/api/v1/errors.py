"""
Translation of domain errors into HTTP responses.
"""
from fastapi import HTTPException, status

from budget_planner.domain.exceptions import (
    ConcurrencyError,
    DomainError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    WBSConflictError,
)

_STATUS_CODES = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (WBSConflictError, status.HTTP_409_CONFLICT),
    (ConcurrencyError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def http_error(error: DomainError) -> HTTPException:
    """HTTPException carrying the domain error message."""
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)


def no_op_error(entity_label: str, action: str) -> HTTPException:
    """400 for reject/revert requests that had nothing to undo."""
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"{entity_label} has nothing to {action}",
    )
