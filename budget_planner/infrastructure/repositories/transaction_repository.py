"""
Transaction Repository - Data access for actual expenses and revenues.

Amounts are integer cents.
"""
from datetime import date
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from budget_planner.models import TransactionEntity
from .base_repository import BaseRepository


class TransactionRepository(BaseRepository[TransactionEntity]):
    """Repository for TransactionEntity rows."""

    def __init__(self, session: Session):
        super().__init__(session, TransactionEntity)

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
        """Record a transaction. Values are checked by TransactionService."""
        entity = TransactionEntity(
            type=type,
            amount=amount_cents,
            description=description,
            date=transaction_date,
            budget_item_id=budget_item_id,
            csv_file_name=csv_file_name,
            csv_row_number=csv_row_number,
        )
        self.session.add(entity)
        self.session.flush()
        return entity

    def get_by_year(self, year: int, type: Optional[str] = None) -> List[TransactionEntity]:
        query = self.session.query(TransactionEntity).filter(
            TransactionEntity.date >= date(year, 1, 1),
            TransactionEntity.date <= date(year, 12, 31),
        )
        if type:
            query = query.filter(TransactionEntity.type == type)
        return query.order_by(TransactionEntity.date).all()

    def list_recent(
        self,
        year: Optional[int] = None,
        type: Optional[str] = None,
        limit: int = 50,
    ) -> List[TransactionEntity]:
        """Newest first, optionally narrowed to one year and type."""
        query = self.session.query(TransactionEntity)
        if year:
            query = query.filter(
                TransactionEntity.date >= date(year, 1, 1),
                TransactionEntity.date <= date(year, 12, 31),
            )
        if type:
            query = query.filter(TransactionEntity.type == type)
        return query.order_by(
            TransactionEntity.date.desc(), TransactionEntity.created_at.desc()
        ).limit(limit).all()

    def get_total_by_budget_item(self, budget_item_id: str) -> int:
        """Total cents booked against a budget item."""
        result = self.session.query(func.sum(TransactionEntity.amount)).filter(
            TransactionEntity.budget_item_id == budget_item_id
        ).scalar()
        return result or 0
