"""
Process Service - Orchestrates project process edits and transitions.

Handles:
- WBS uniqueness on create and rename
- WBS rename cascade to every descendant in one transaction
- The shared approval lifecycle on planned dates
- Actual start/finish tracking
- Derived WBS tree with rolled-up group dates
"""
import logging
from datetime import date, datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budget_planner.config import BudgetPlannerConfig, get_config
from budget_planner.models import Project
from budget_planner.infrastructure.repositories import ProcessRepository
from budget_planner.domain.entities import ProjectProcess, validate_wbs
from budget_planner.domain.entities.wbs import is_descendant, rebase_wbs
from budget_planner.domain.exceptions import (
    ConcurrencyError,
    ScopeNotFoundError,
    ValidationError,
    WBSConflictError,
)
from .wbs_tree_service import WBSNode, build_wbs_rows

logger = logging.getLogger(__name__)


class ProcessService:
    """Service for project processes and their WBS hierarchy."""

    def __init__(self, session: Session, config: Optional[BudgetPlannerConfig] = None):
        self.session = session
        self.repo = ProcessRepository(session)
        self.config = config or get_config()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load(self, process_id: str, expected_version: Optional[int] = None) -> ProjectProcess:
        process = self.repo.get(process_id)
        if expected_version is not None and process.version_id != expected_version:
            raise ConcurrencyError("Process", process_id)
        return process

    def _apply(
        self,
        process_id: str,
        action: str,
        mutate: Callable[[ProjectProcess], Optional[bool]],
        expected_version: Optional[int] = None,
    ) -> Optional[ProjectProcess]:
        try:
            process = self._load(process_id, expected_version)
            if mutate(process) is False:
                self.session.rollback()
                logger.warning(f"Process {process_id}: {action} skipped in status '{process.status.value}'")
                return None
            saved = self.repo.save(process)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Process {saved.wbs} ({process_id}): {action} -> {saved.status.value}")
        return saved

    def _require_project(self, project_id: str) -> None:
        if not project_id or not self.session.get(Project, project_id):
            raise ScopeNotFoundError("Project", project_id)

    def _check_rename(self, process: ProjectProcess, new_wbs: str) -> None:
        """
        Make sure every key of the moved subtree is free.

        Raises:
            ValidationError: If new_wbs lies inside the process's own subtree
                or a moved key grows past the column width
            WBSConflictError: If a target key belongs to a process outside it
        """
        if is_descendant(new_wbs, process.wbs):
            raise ValidationError("wbs", f"cannot move '{process.wbs}' under itself ('{new_wbs}')")

        moving = [process.wbs] + [row.wbs for row in self.repo.get_subtree(process.project_id, process.wbs)]
        moving_keys = set(moving)
        for wbs in moving:
            target = rebase_wbs(wbs, process.wbs, new_wbs)
            validate_wbs(target)
            if target not in moving_keys and self.repo.wbs_exists(process.project_id, target):
                raise WBSConflictError(target, process.project_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, process_id: str) -> ProjectProcess:
        return self.repo.get(process_id)

    def list_processes(self, project_id: str) -> List[ProjectProcess]:
        """All processes of a project, WBS ordered."""
        return self.repo.list_by_project(project_id)

    def get_tree(self, project_id: str) -> List[WBSNode]:
        """
        Flattened WBS tree for a project.

        Each row carries its level, whether it is a group and, for groups,
        the min start / max end over its leaf descendants.
        """
        return build_wbs_rows(self.repo.list_by_project(project_id))

    # =========================================================================
    # Create / Update / Delete
    # =========================================================================

    def create(
        self,
        project_id: str,
        wbs: str,
        name: str,
        start_date: date,
        end_date: date,
    ) -> ProjectProcess:
        """
        Create a draft process.

        Raises:
            ValidationError: Bad WBS, missing name or inverted dates
            WBSConflictError: WBS already used in the project
            ScopeNotFoundError: Project does not exist
        """
        process = ProjectProcess(
            project_id=project_id,
            wbs=wbs,
            name=name or "",
            start_date=start_date,
            end_date=end_date,
        )
        process.validate()
        self._require_project(project_id)

        if self.repo.wbs_exists(project_id, process.wbs):
            raise WBSConflictError(process.wbs, project_id)

        try:
            created = self.repo.create(process)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise WBSConflictError(process.wbs, project_id)
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Process {created.wbs} created in project {project_id}")
        return created

    def update(
        self,
        process_id: str,
        name: Optional[str] = None,
        wbs: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        expected_version: Optional[int] = None,
    ) -> ProjectProcess:
        """
        Edit a process. A WBS change moves every descendant with it.

        Name and WBS may change in any state; planned dates only while
        draft or rejected.

        Raises:
            InvalidTransitionError: Date change outside an editable state
            ValidationError: Bad values or a move under its own subtree
            WBSConflictError: Any moved key collides with another process
        """
        new_wbs = None
        try:
            process = self._load(process_id, expected_version)

            if name is not None:
                process.rename(name)

            if start_date is not None or end_date is not None:
                new_start = start_date or process.start_date
                new_end = end_date or process.end_date
                if (new_start, new_end) != (process.start_date, process.end_date):
                    process.reschedule(new_start, new_end)

            if wbs is not None:
                new_wbs = validate_wbs(wbs)
                if new_wbs != process.wbs:
                    self._check_rename(process, new_wbs)
                    moved = self.repo.rename_subtree(process.id, new_wbs)
                    logger.info(
                        f"Process {process_id}: WBS {process.wbs} -> {new_wbs}, "
                        f"{moved} descendants moved"
                    )
                    process.wbs = new_wbs

            saved = self.repo.save(process)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise WBSConflictError(new_wbs or process.wbs, process.project_id)
        except Exception:
            self.session.rollback()
            raise

        return saved

    def delete(self, process_id: str) -> None:
        """Delete one process. Descendants are kept and become roots."""
        try:
            self.repo.delete_process(process_id)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info(f"Process {process_id} deleted")

    # =========================================================================
    # Approval transitions
    # =========================================================================

    def submit_for_approval(self, process_id: str, expected_version: Optional[int] = None) -> ProjectProcess:
        return self._apply(process_id, "submit", lambda p: p.submit_for_approval(), expected_version)

    def approve(self, process_id: str, expected_version: Optional[int] = None) -> ProjectProcess:
        return self._apply(process_id, "approve", lambda p: p.approve(), expected_version)

    def withdraw(self, process_id: str, expected_version: Optional[int] = None) -> ProjectProcess:
        return self._apply(process_id, "withdraw", lambda p: p.withdraw(), expected_version)

    def reject(self, process_id: str, expected_version: Optional[int] = None) -> Optional[ProjectProcess]:
        """None when the process is not pending."""
        return self._apply(process_id, "reject", lambda p: p.reject(), expected_version)

    def revise(
        self,
        process_id: str,
        editor_name: Optional[str] = None,
        revision_reason: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> ProjectProcess:
        editor = (editor_name or "").strip() or self.config.default_editor_name
        reason = (revision_reason or "").strip() or None
        return self._apply(process_id, "revise", lambda p: p.revise(editor, reason), expected_version)

    def revert(self, process_id: str, expected_version: Optional[int] = None) -> Optional[ProjectProcess]:
        """None when there is nothing to revert to."""
        return self._apply(process_id, "revert", lambda p: p.revert(), expected_version)

    # =========================================================================
    # Progress tracking
    # =========================================================================

    def start(self, process_id: str, now: Optional[datetime] = None) -> ProjectProcess:
        return self._apply(process_id, "start", lambda p: p.start(now))

    def finish(self, process_id: str, now: Optional[datetime] = None) -> ProjectProcess:
        return self._apply(process_id, "finish", lambda p: p.finish(now))
