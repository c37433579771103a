"""
Domain Exceptions for the budget approval lifecycle.

Custom exceptions enforcing business rules:
- Legal state transitions
- Record existence
- Field validation
- WBS uniqueness across rename cascades
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


# =============================================================================
# Transition Exceptions
# =============================================================================

class InvalidTransitionError(DomainError):
    """Raised when a transition is not legal from the current status."""

    def __init__(self, action: str, status: str, entity_type: str = "Budget item"):
        message = f"{entity_type} cannot {action} while '{status}'"
        super().__init__(message, code="INVALID_TRANSITION")
        self.action = action
        self.status = status
        self.entity_type = entity_type


# =============================================================================
# Not Found Exceptions
# =============================================================================

class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity_type: str, entity_id: str, code: str = "NOT_FOUND"):
        message = f"{entity_type} with id '{entity_id}' not found"
        super().__init__(message, code=code)
        self.entity_type = entity_type
        self.entity_id = entity_id


class BudgetItemNotFoundError(NotFoundError):
    """Raised when a budget item cannot be found."""

    def __init__(self, item_id: str):
        super().__init__("Budget item", item_id, code="BUDGET_ITEM_NOT_FOUND")
        self.item_id = item_id


class ProcessNotFoundError(NotFoundError):
    """Raised when a project process cannot be found."""

    def __init__(self, process_id: str):
        super().__init__("Process", process_id, code="PROCESS_NOT_FOUND")
        self.process_id = process_id


class ScopeNotFoundError(NotFoundError):
    """Raised when a cost group, phase, department or project is missing."""

    def __init__(self, scope_type: str, scope_id: str):
        super().__init__(scope_type, scope_id, code="SCOPE_NOT_FOUND")


# =============================================================================
# Validation Exceptions
# =============================================================================

class ValidationError(DomainError):
    """Raised when data validation fails."""

    def __init__(self, field: str, message: str):
        super().__init__(f"Validation failed for '{field}': {message}", code="VALIDATION_ERROR")
        self.field = field


class WBSConflictError(DomainError):
    """Raised when a WBS create or rename collides with an existing key."""

    def __init__(self, wbs: str, project_id: str):
        message = f"WBS '{wbs}' already exists in project '{project_id}'"
        super().__init__(message, code="WBS_CONFLICT")
        self.wbs = wbs
        self.project_id = project_id


class ConcurrencyError(DomainError):
    """Raised when optimistic locking fails (version mismatch)."""

    def __init__(self, entity_type: str, entity_id: str):
        message = (
            f"Concurrent modification detected for {entity_type} '{entity_id}'. "
            f"Please refresh and try again."
        )
        super().__init__(message, code="CONCURRENCY_ERROR")
        self.entity_type = entity_type
        self.entity_id = entity_id
