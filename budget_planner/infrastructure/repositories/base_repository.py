"""
Base Repository - Shared data access for the entity repositories.

Repositories flush but never commit; the calling service owns the
transaction so a multi-row change (e.g. a WBS cascade) commits once.
"""
from typing import Generic, TypeVar, Optional, Type
from sqlalchemy.orm import Session

from budget_planner.models import Base

T = TypeVar('T', bound=Base)


class BaseRepository(Generic[T]):
    """
    Base repository keyed by string primary keys.

    Type Parameters:
        T: The SQLAlchemy model type this repository manages
    """

    def __init__(self, session: Session, model_class: Type[T]):
        self.session = session
        self.model_class = model_class

    def get_by_id(self, entity_id: str) -> Optional[T]:
        """
        Retrieve an entity by its primary key.

        Returns:
            The entity if found, None otherwise
        """
        return self.session.get(self.model_class, entity_id)

    def delete(self, entity: T) -> None:
        """Mark an entity for deletion; ORM cascades apply on flush."""
        self.session.delete(entity)
