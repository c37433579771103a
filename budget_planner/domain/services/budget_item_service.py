"""
Budget Item Service - Orchestrates budget item transitions.

Each operation is one read-modify-write:
1. Load the item (and optionally check its version)
2. Apply the transition on the domain object
3. Write it back with any new history entry
4. Commit, or roll back on any failure

reject() and revert() return None instead of raising when their
preconditions are not met.
"""
import logging
from datetime import date
from typing import Callable, List, Mapping, Optional

from sqlalchemy.orm import Session

from budget_planner.config import BudgetPlannerConfig, get_config
from budget_planner.models import CostGroup, ProjectPhase
from budget_planner.infrastructure.repositories import BudgetItemRepository
from budget_planner.domain.entities import BudgetItem, BudgetItemType
from budget_planner.domain.exceptions import ConcurrencyError, ScopeNotFoundError

logger = logging.getLogger(__name__)


class BudgetItemService:
    """
    Service for the budget item approval lifecycle.

    Enforces:
    - draft -> pending -> approved transitions
    - one history entry per revise
    - previous approved values only while a revision is open
    """

    def __init__(self, session: Session, config: Optional[BudgetPlannerConfig] = None):
        self.session = session
        self.repo = BudgetItemRepository(session)
        self.config = config or get_config()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load(self, item_id: str, expected_version: Optional[int] = None) -> BudgetItem:
        item = self.repo.get(item_id)
        if expected_version is not None and item.version_id != expected_version:
            raise ConcurrencyError("Budget item", item_id)
        return item

    def _apply(
        self,
        item_id: str,
        action: str,
        mutate: Callable[[BudgetItem], Optional[bool]],
        expected_version: Optional[int] = None,
    ) -> Optional[BudgetItem]:
        """
        Run one transition inside one database transaction.

        Returns:
            The saved item, or None when mutate reports a no-op (False)
        """
        try:
            item = self._load(item_id, expected_version)
            if mutate(item) is False:
                self.session.rollback()
                logger.warning(f"Budget item {item_id}: {action} skipped in status '{item.status.value}'")
                return None
            saved = self.repo.save(item)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(
            f"Budget item {item_id}: {action} -> {saved.status.value} "
            f"(revision {saved.current_revision})"
        )
        return saved

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, item_id: str) -> BudgetItem:
        """Get a budget item with its history."""
        return self.repo.get(item_id)

    def list_budget_items(self, scope_id: str, year: int) -> List[BudgetItem]:
        """List the items of a cost group or project phase for a year."""
        return self.repo.list_by_scope(scope_id, year)

    # =========================================================================
    # Create / Delete
    # =========================================================================

    def create(
        self,
        name: str,
        year: Optional[int] = None,
        item_type: str = BudgetItemType.COST,
        cost_group_id: Optional[str] = None,
        project_phase_id: Optional[str] = None,
        monthly_values: Optional[Mapping] = None,
        sort_order: int = 0,
    ) -> BudgetItem:
        """
        Create a draft budget item at revision 0.

        Raises:
            ValidationError: Missing name, bad type, bad parent or values
            ScopeNotFoundError: Parent cost group or phase does not exist
        """
        item = BudgetItem(
            name=name or "",
            item_type=item_type,
            cost_group_id=cost_group_id,
            project_phase_id=project_phase_id,
            year=year or self.config.default_year,
            monthly_values=monthly_values or {},
            sort_order=sort_order,
        )
        item.validate()

        if cost_group_id and not self.session.get(CostGroup, cost_group_id):
            raise ScopeNotFoundError("Cost group", cost_group_id)
        if project_phase_id and not self.session.get(ProjectPhase, project_phase_id):
            raise ScopeNotFoundError("Project phase", project_phase_id)

        try:
            created = self.repo.create(item)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Budget item {created.id} created ('{created.name}', {created.year})")
        return created

    def delete(self, item_id: str) -> None:
        """Permanently delete an item in any state."""
        try:
            self.repo.delete_item(item_id)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info(f"Budget item {item_id} deleted")

    # =========================================================================
    # Transitions
    # =========================================================================

    def submit_for_approval(self, item_id: str, expected_version: Optional[int] = None) -> BudgetItem:
        return self._apply(item_id, "submit", lambda item: item.submit_for_approval(), expected_version)

    def approve(self, item_id: str, expected_version: Optional[int] = None) -> BudgetItem:
        return self._apply(item_id, "approve", lambda item: item.approve(), expected_version)

    def withdraw(self, item_id: str, expected_version: Optional[int] = None) -> BudgetItem:
        return self._apply(item_id, "withdraw", lambda item: item.withdraw(), expected_version)

    def reject(self, item_id: str, expected_version: Optional[int] = None) -> Optional[BudgetItem]:
        """Undo a pending change; None when the item is not pending."""
        return self._apply(item_id, "reject", lambda item: item.reject(), expected_version)

    def save(
        self,
        item_id: str,
        monthly_values: Mapping,
        expected_version: Optional[int] = None,
        today: Optional[date] = None,
    ) -> BudgetItem:
        """
        Replace the monthly values of a draft item.

        Raises:
            InvalidTransitionError: If the item is not draft or rejected
            ValidationError: On bad values or locked past months
        """
        lock = self.config.lock_past_months
        return self._apply(
            item_id,
            "save",
            lambda item: item.save(monthly_values, today=today, lock_past_months=lock),
            expected_version,
        )

    def revise(
        self,
        item_id: str,
        editor_name: Optional[str] = None,
        revision_reason: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> BudgetItem:
        """
        Re-open an approved item; logs the approved values in history.

        Raises:
            InvalidTransitionError: If the item is not approved
        """
        editor = (editor_name or "").strip() or self.config.default_editor_name
        reason = (revision_reason or "").strip() or None
        return self._apply(
            item_id, "revise", lambda item: item.revise(editor, reason), expected_version
        )

    def revert(self, item_id: str, expected_version: Optional[int] = None) -> Optional[BudgetItem]:
        """Return to the previous approved values; None when not possible."""
        return self._apply(item_id, "revert", lambda item: item.revert(), expected_version)
