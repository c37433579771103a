"""
Repository Layer - Data access abstractions.

Implements the Repository pattern for clean separation between
domain logic and data persistence.
"""

from .base_repository import BaseRepository
from .budget_item_repository import BudgetItemRepository
from .process_repository import ProcessRepository
from .transaction_repository import TransactionRepository

__all__ = [
    'BaseRepository',
    'BudgetItemRepository',
    'ProcessRepository',
    'TransactionRepository',
]
