"""
Transaction Service - Records actual expenses and revenues.

Amounts arrive and are stored as integer cents; reports convert them to
whole currency units.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from budget_planner.config import BudgetPlannerConfig, get_config
from budget_planner.models import TransactionEntity
from budget_planner.infrastructure.repositories import BudgetItemRepository, TransactionRepository
from budget_planner.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)


class TransactionType:
    EXPENSE = "expense"
    REVENUE = "revenue"

    ALL = (EXPENSE, REVENUE)


class TransactionService:
    """Service for booking and listing actual transactions."""

    def __init__(self, session: Session, config: Optional[BudgetPlannerConfig] = None):
        self.session = session
        self.repo = TransactionRepository(session)
        self.item_repo = BudgetItemRepository(session)
        self.config = config or get_config()

    def create(
        self,
        type: str,
        amount_cents: int,
        description: str,
        transaction_date: date,
        budget_item_id: Optional[str] = None,
        csv_file_name: Optional[str] = None,
        csv_row_number: Optional[int] = None,
    ) -> TransactionEntity:
        """
        Book one transaction, optionally against a budget item.

        Raises:
            ValidationError: Unknown type, negative or non-integer amount,
                empty description or missing date
            BudgetItemNotFoundError: budget_item_id does not exist
        """
        if type not in TransactionType.ALL:
            raise ValidationError("type", f"must be one of {', '.join(TransactionType.ALL)}")
        if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
            raise ValidationError("amount", "must be a whole number of cents")
        if amount_cents < 0:
            raise ValidationError("amount", "cannot be negative")
        description = (description or "").strip()
        if not description:
            raise ValidationError("description", "description is required")
        if transaction_date is None:
            raise ValidationError("date", "date is required")
        if budget_item_id:
            self.item_repo.get_entity(budget_item_id)

        try:
            entity = self.repo.create(
                type,
                amount_cents,
                description,
                transaction_date,
                budget_item_id=budget_item_id or None,
                csv_file_name=csv_file_name,
                csv_row_number=csv_row_number,
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Transaction {entity.id}: {type} {amount_cents} cents on {transaction_date}")
        return entity

    def list_transactions(
        self,
        year: Optional[int] = None,
        type: Optional[str] = None,
        limit: int = 50,
    ) -> List[TransactionEntity]:
        if type is not None and type not in TransactionType.ALL:
            raise ValidationError("type", f"must be one of {', '.join(TransactionType.ALL)}")
        return self.repo.list_recent(year, type, limit)
