"""
Budget Item Repository - Data access layer for budget items.

Maps BudgetItemEntity rows (plus their revision rows) to BudgetItem domain
objects and writes transitioned objects back. Nothing here commits; the
calling service owns the transaction.
"""
from typing import Dict, List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from budget_planner.models import (
    BudgetItemEntity, BudgetRevisionEntity, CostGroup, Department, ProjectPhase,
)
from budget_planner.domain.entities import BudgetItem, BudgetRevision
from budget_planner.domain.exceptions import BudgetItemNotFoundError
from .base_repository import BaseRepository


def _to_json_values(values: Optional[Dict[int, int]]) -> Optional[Dict[str, int]]:
    """JSON object keys are strings."""
    if values is None:
        return None
    return {str(month): amount for month, amount in sorted(values.items())}


class BudgetItemRepository(BaseRepository[BudgetItemEntity]):
    """
    Repository for BudgetItem entities.

    Budget items belong to a cost group (department budgets) or a project
    phase (project budgets) and are always queried per year.
    """

    def __init__(self, session: Session):
        super().__init__(session, BudgetItemEntity)

    # =========================================================================
    # Mapping
    # =========================================================================

    @staticmethod
    def to_domain(entity: BudgetItemEntity) -> BudgetItem:
        """Build the domain object, history included."""
        return BudgetItem(
            id=entity.id,
            name=entity.name,
            item_type=entity.type,
            cost_group_id=entity.cost_group_id,
            project_phase_id=entity.project_phase_id,
            year=entity.year,
            monthly_values=entity.monthly_values or {},
            status=entity.status,
            current_revision=entity.current_revision,
            previous_approved_values=entity.previous_approved_values,
            history=[
                BudgetRevision(
                    id=rev.id,
                    revision_number=rev.revision_number,
                    monthly_values={int(k): v for k, v in (rev.monthly_values or {}).items()},
                    editor_name=rev.editor_name,
                    revision_reason=rev.revision_reason,
                    created_at=rev.created_at,
                )
                for rev in entity.revisions
            ],
            sort_order=entity.sort_order,
            version_id=entity.version_id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def _query(self):
        return self.session.query(BudgetItemEntity).options(
            selectinload(BudgetItemEntity.revisions)
        )

    def get_entity(self, item_id: str) -> BudgetItemEntity:
        """
        Get the ORM row.

        Raises:
            BudgetItemNotFoundError: If not found
        """
        entity = self.get_by_id(item_id)
        if not entity:
            raise BudgetItemNotFoundError(str(item_id))
        return entity

    def get(self, item_id: str) -> BudgetItem:
        """
        Get a budget item with its history.

        Raises:
            BudgetItemNotFoundError: If not found
        """
        return self.to_domain(self.get_entity(item_id))

    def list_by_scope(self, scope_id: str, year: int) -> List[BudgetItem]:
        """
        List items owned by a cost group or project phase for a year.

        Args:
            scope_id: Cost group id or project phase id
            year: Budget year
        """
        rows = self._query().filter(
            or_(
                BudgetItemEntity.cost_group_id == scope_id,
                BudgetItemEntity.project_phase_id == scope_id,
            ),
            BudgetItemEntity.year == year,
        ).order_by(BudgetItemEntity.sort_order, BudgetItemEntity.created_at).all()
        return [self.to_domain(row) for row in rows]

    def list_by_project(self, project_id: str, year: int) -> List[BudgetItem]:
        rows = self._query().join(
            ProjectPhase, BudgetItemEntity.project_phase_id == ProjectPhase.id
        ).filter(
            ProjectPhase.project_id == project_id,
            BudgetItemEntity.year == year,
        ).order_by(ProjectPhase.sort_order, BudgetItemEntity.sort_order).all()
        return [self.to_domain(row) for row in rows]

    def list_department_items(self, year: int) -> List[BudgetItem]:
        """All items hanging off cost groups for a year."""
        rows = self._query().filter(
            BudgetItemEntity.cost_group_id.isnot(None),
            BudgetItemEntity.year == year,
        ).all()
        return [self.to_domain(row) for row in rows]

    def list_project_items(self, year: int) -> List[BudgetItem]:
        """All items hanging off project phases for a year."""
        rows = self._query().filter(
            BudgetItemEntity.project_phase_id.isnot(None),
            BudgetItemEntity.year == year,
        ).all()
        return [self.to_domain(row) for row in rows]

    def find_cost_group(self, department_name: str, group_name: str) -> Optional[CostGroup]:
        """Case-insensitive lookup of a cost group by department and group name."""
        candidates = self.session.query(CostGroup).join(
            Department, CostGroup.department_id == Department.id
        ).all()
        for group in candidates:
            if (group.department.name.strip().lower() == department_name.strip().lower()
                    and group.name.strip().lower() == group_name.strip().lower()):
                return group
        return None

    # =========================================================================
    # Writes
    # =========================================================================

    def create(self, item: BudgetItem) -> BudgetItem:
        """
        Insert a new budget item.

        Returns:
            The item with id and timestamps populated (after flush)
        """
        entity = BudgetItemEntity(
            name=item.name.strip(),
            type=item.item_type,
            cost_group_id=item.cost_group_id,
            project_phase_id=item.project_phase_id,
            year=item.year,
            monthly_values=_to_json_values(item.monthly_values),
            previous_approved_values=None,
            status=item.status.value,
            current_revision=item.current_revision,
            sort_order=item.sort_order,
            version_id=1,
        )
        self.session.add(entity)
        self.session.flush()
        return self.to_domain(entity)

    def save(self, item: BudgetItem) -> BudgetItem:
        """
        Write a transitioned item back, appending new history entries.

        History entries without an id are new; existing entries are never
        rewritten.

        Raises:
            BudgetItemNotFoundError: If the row disappeared
        """
        entity = self.get_entity(item.id)

        entity.name = item.name
        entity.monthly_values = _to_json_values(item.monthly_values)
        entity.previous_approved_values = _to_json_values(item.previous_approved_values)
        entity.status = item.status.value
        entity.current_revision = item.current_revision
        entity.version_id = (entity.version_id or 0) + 1

        for entry in item.history:
            if entry.id is None:
                entity.revisions.append(BudgetRevisionEntity(
                    revision_number=entry.revision_number,
                    monthly_values=_to_json_values(entry.monthly_values),
                    revision_reason=entry.revision_reason,
                    editor_name=entry.editor_name,
                    created_at=entry.created_at,
                ))

        self.session.flush()
        return self.to_domain(entity)

    def delete_item(self, item_id: str) -> None:
        """
        Hard delete; revision rows go with it.

        Raises:
            BudgetItemNotFoundError: If not found
        """
        self.delete(self.get_entity(item_id))
        self.session.flush()
