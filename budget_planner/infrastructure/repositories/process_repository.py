"""
Process Repository - Data access layer for project processes.

Implements repository pattern for process operations with:
- WBS ordered listing per project
- WBS uniqueness checks
- Subtree rename (WBS cascade)
"""
from typing import List, Optional
from sqlalchemy.orm import Session, selectinload

from budget_planner.models import ProjectProcessEntity, ProcessRevisionEntity
from budget_planner.domain.entities import ProjectProcess, ProcessRevision
from budget_planner.domain.entities.wbs import is_descendant, rebase_wbs, sort_by_wbs
from budget_planner.domain.exceptions import ProcessNotFoundError
from .base_repository import BaseRepository


class ProcessRepository(BaseRepository[ProjectProcessEntity]):
    """
    Repository for ProjectProcess entities.

    Parent/child structure is not stored; it is derived from the WBS keys
    of a project's processes on every read.
    """

    def __init__(self, session: Session):
        super().__init__(session, ProjectProcessEntity)

    # =========================================================================
    # Mapping
    # =========================================================================

    @staticmethod
    def to_domain(entity: ProjectProcessEntity) -> ProjectProcess:
        return ProjectProcess(
            id=entity.id,
            project_id=entity.project_id,
            wbs=entity.wbs,
            name=entity.name,
            start_date=entity.start_date,
            end_date=entity.end_date,
            actual_start_date=entity.actual_start_date,
            actual_end_date=entity.actual_end_date,
            status=entity.status,
            current_revision=entity.current_revision,
            previous_start_date=entity.previous_start_date,
            previous_end_date=entity.previous_end_date,
            history=[
                ProcessRevision(
                    id=rev.id,
                    revision_number=rev.revision_number,
                    start_date=rev.start_date,
                    end_date=rev.end_date,
                    editor_name=rev.editor_name,
                    revision_reason=rev.revision_reason,
                    created_at=rev.created_at,
                )
                for rev in entity.revisions
            ],
            version_id=entity.version_id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def get_entity(self, process_id: str) -> ProjectProcessEntity:
        """
        Get the ORM row.

        Raises:
            ProcessNotFoundError: If not found
        """
        entity = self.get_by_id(process_id)
        if not entity:
            raise ProcessNotFoundError(str(process_id))
        return entity

    def get(self, process_id: str) -> ProjectProcess:
        """
        Get a process with its history.

        Raises:
            ProcessNotFoundError: If not found
        """
        return self.to_domain(self.get_entity(process_id))

    def _project_rows(self, project_id: str) -> List[ProjectProcessEntity]:
        return self.session.query(ProjectProcessEntity).options(
            selectinload(ProjectProcessEntity.revisions)
        ).filter(
            ProjectProcessEntity.project_id == project_id
        ).all()

    def list_by_project(self, project_id: str) -> List[ProjectProcess]:
        """All processes of a project in WBS order."""
        return sort_by_wbs(self.to_domain(row) for row in self._project_rows(project_id))

    def get_by_wbs(self, project_id: str, wbs: str) -> Optional[ProjectProcess]:
        entity = self.session.query(ProjectProcessEntity).filter(
            ProjectProcessEntity.project_id == project_id,
            ProjectProcessEntity.wbs == wbs,
        ).first()
        return self.to_domain(entity) if entity else None

    def wbs_exists(self, project_id: str, wbs: str) -> bool:
        return self.session.query(ProjectProcessEntity).filter(
            ProjectProcessEntity.project_id == project_id,
            ProjectProcessEntity.wbs == wbs,
        ).first() is not None

    def get_subtree(self, project_id: str, wbs: str) -> List[ProjectProcessEntity]:
        """Rows strictly below wbs (prefix "wbs.")."""
        return [
            row for row in self.session.query(ProjectProcessEntity).filter(
                ProjectProcessEntity.project_id == project_id,
                ProjectProcessEntity.wbs.startswith(wbs + ".", autoescape=True),
            ).all()
            if is_descendant(row.wbs, wbs)
        ]

    # =========================================================================
    # Writes
    # =========================================================================

    def create(self, process: ProjectProcess) -> ProjectProcess:
        entity = ProjectProcessEntity(
            project_id=process.project_id,
            wbs=process.wbs,
            name=process.name.strip(),
            start_date=process.start_date,
            end_date=process.end_date,
            status=process.status.value,
            current_revision=process.current_revision,
            version_id=1,
        )
        self.session.add(entity)
        self.session.flush()
        return self.to_domain(entity)

    def save(self, process: ProjectProcess) -> ProjectProcess:
        """
        Write a transitioned process back, appending new history entries.

        Raises:
            ProcessNotFoundError: If the row disappeared
        """
        entity = self.get_entity(process.id)

        entity.name = process.name
        entity.wbs = process.wbs
        entity.start_date = process.start_date
        entity.end_date = process.end_date
        entity.actual_start_date = process.actual_start_date
        entity.actual_end_date = process.actual_end_date
        entity.status = process.status.value
        entity.current_revision = process.current_revision
        entity.previous_start_date = process.previous_start_date
        entity.previous_end_date = process.previous_end_date
        entity.version_id = (entity.version_id or 0) + 1

        for entry in process.history:
            if entry.id is None:
                entity.revisions.append(ProcessRevisionEntity(
                    revision_number=entry.revision_number,
                    start_date=entry.start_date,
                    end_date=entry.end_date,
                    revision_reason=entry.revision_reason,
                    editor_name=entry.editor_name,
                    created_at=entry.created_at,
                ))

        self.session.flush()
        return self.to_domain(entity)

    def rename_subtree(self, process_id: str, new_wbs: str) -> int:
        """
        Move a process and every descendant from its WBS to new_wbs.

        Rows are first parked on temporary keys so the per-project unique
        constraint never sees two rows with the same WBS mid-flush.

        Returns:
            Number of descendant rows rewritten
        """
        node = self.get_entity(process_id)
        old_wbs = node.wbs
        descendants = self.get_subtree(node.project_id, old_wbs)
        rows = [node] + descendants
        targets = {row.id: rebase_wbs(row.wbs, old_wbs, new_wbs) for row in rows}

        for row in rows:
            row.wbs = f"~{row.id}"
        self.session.flush()

        for row in rows:
            row.wbs = targets[row.id]
        self.session.flush()

        return len(descendants)

    def delete_process(self, process_id: str) -> None:
        """
        Hard delete; revision rows go with it. Children keep their WBS keys
        and show up as roots until a parent key exists again.

        Raises:
            ProcessNotFoundError: If not found
        """
        self.delete(self.get_entity(process_id))
        self.session.flush()
