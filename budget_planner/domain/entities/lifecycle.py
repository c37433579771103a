"""
Approval lifecycle shared by budget items and project processes.

Both records move through draft -> pending -> approved and keep two kinds of
memory when an approved record is revised:
- an append-only revision log (audit)
- a single "previous approved" slot (one-hop revert)

Subclasses supply the value snapshot hooks; the transition rules live here.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..exceptions import InvalidTransitionError


class ApprovalStatus(str, Enum):
    """Workflow states for revisable records."""
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# States in which committed values may be edited
EDITABLE_STATUSES = (ApprovalStatus.DRAFT, ApprovalStatus.REJECTED)


class ApprovalWorkflow:
    """
    Mixin implementing the draft/pending/approved state machine.

    Expects the host to define ``status``, ``current_revision`` and
    ``history`` attributes plus the snapshot hooks below. Every transition
    checks its guard before touching any field, so a refused transition
    leaves the record unchanged.
    """

    entity_label = "Record"

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def has_snapshot(self) -> bool:
        raise NotImplementedError

    def _take_snapshot(self) -> None:
        raise NotImplementedError

    def _restore_snapshot(self) -> None:
        raise NotImplementedError

    def _clear_snapshot(self) -> None:
        raise NotImplementedError

    def _make_revision(self, editor_name: str, revision_reason: Optional[str],
                       timestamp: datetime) -> Any:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require(self, action: str, *allowed: ApprovalStatus) -> None:
        if self.status not in allowed:
            raise InvalidTransitionError(action, self.status.value, self.entity_label)

    def require_editable(self, action: str = "be edited") -> None:
        """Raise unless committed values may be changed in the current state."""
        self._require(action, *EDITABLE_STATUSES)

    def _step_back_revision(self) -> None:
        self.current_revision = max(0, self.current_revision - 1)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def submit_for_approval(self) -> None:
        """draft -> pending."""
        self._require("submit for approval", ApprovalStatus.DRAFT)
        self.status = ApprovalStatus.PENDING

    def approve(self) -> None:
        """pending -> approved; the pending values become the new baseline."""
        self._require("approve", ApprovalStatus.PENDING)
        self.status = ApprovalStatus.APPROVED
        self._clear_snapshot()

    def withdraw(self) -> None:
        """pending -> draft, values untouched."""
        self._require("withdraw", ApprovalStatus.PENDING)
        self.status = ApprovalStatus.DRAFT

    def reject(self) -> bool:
        """
        Undo the pending change.

        With a previous approved snapshot the record returns to that
        baseline and to approved; without one it drops back to draft.

        Returns:
            False (and changes nothing) when the record is not pending.
        """
        if self.status != ApprovalStatus.PENDING:
            return False

        if self.has_snapshot():
            self._restore_snapshot()
            self._clear_snapshot()
            self._step_back_revision()
            self.status = ApprovalStatus.APPROVED
        else:
            self.status = ApprovalStatus.DRAFT
        return True

    def revise(self, editor_name: str, revision_reason: Optional[str] = None,
               timestamp: Optional[datetime] = None) -> Any:
        """
        Re-open an approved record for editing.

        Logs the current values under the current revision number, keeps
        them in the previous-approved slot, bumps the revision and moves
        to draft.

        Returns:
            The revision entry appended to history.
        """
        self._require("revise", ApprovalStatus.APPROVED)

        entry = self._make_revision(editor_name, revision_reason,
                                    timestamp or datetime.utcnow())
        self.history.append(entry)
        self._take_snapshot()
        self.current_revision += 1
        self.status = ApprovalStatus.DRAFT
        return entry

    def revert(self) -> bool:
        """
        Return to the previous approved values.

        Returns:
            False (and changes nothing) without a snapshot or when the
            record is already approved.
        """
        if not self.has_snapshot() or self.status == ApprovalStatus.APPROVED:
            return False

        self._restore_snapshot()
        self._clear_snapshot()
        self._step_back_revision()
        self.status = ApprovalStatus.APPROVED
        return True
