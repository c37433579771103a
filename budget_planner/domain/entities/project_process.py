"""
Project Process Entity - schedule activity addressed by a WBS key.

Shares the approval lifecycle with budget items; the committed values are
the planned (start_date, end_date) pair. Actual start/finish tracking runs
independently of approval status.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from ..exceptions import InvalidTransitionError, ValidationError
from .lifecycle import ApprovalStatus, ApprovalWorkflow
from .wbs import WBS_MAX_LENGTH, is_valid_wbs


def validate_wbs(wbs: Optional[str]) -> str:
    """Return the stripped WBS key or raise ValidationError."""
    value = (wbs or "").strip()
    if not value:
        raise ValidationError("wbs", "WBS is required")
    if len(value) > WBS_MAX_LENGTH:
        raise ValidationError("wbs", f"'{value}' is longer than {WBS_MAX_LENGTH} characters")
    if not is_valid_wbs(value):
        raise ValidationError("wbs", f"'{value}' must be dot-separated positive integers")
    return value


def validate_date_range(start_date: date, end_date: date) -> None:
    if start_date is None or end_date is None:
        raise ValidationError("dates", "start_date and end_date are required")
    if end_date < start_date:
        raise ValidationError(
            "end_date", f"end date ({end_date}) cannot be before start date ({start_date})"
        )


@dataclass
class ProcessRevision:
    """History entry captured by revise()."""
    revision_number: int
    start_date: date
    end_date: date
    editor_name: str
    revision_reason: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'revision_number': self.revision_number,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'editor_name': self.editor_name,
            'revision_reason': self.revision_reason,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class ProjectProcess(ApprovalWorkflow):
    """
    Project process (WBS node).

    Attributes:
        id: Unique identifier (None until persisted)
        project_id: Owning project
        wbs: Dot-separated position key, unique per project
        name: Display name
        start_date: Planned start
        end_date: Planned finish
        actual_start_date: Set by start()
        actual_end_date: Set by finish()
        status: Approval state
        current_revision: Number of committed revisions still in effect
        previous_start_date: Approved start kept while a revision is open
        previous_end_date: Approved finish kept while a revision is open
        history: Revision log, oldest first
    """

    entity_label = "Process"

    id: Optional[str] = None
    project_id: Optional[str] = None
    wbs: str = ""
    name: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    actual_start_date: Optional[datetime] = None
    actual_end_date: Optional[datetime] = None
    status: ApprovalStatus = ApprovalStatus.DRAFT
    current_revision: int = 0
    previous_start_date: Optional[date] = None
    previous_end_date: Optional[date] = None
    history: List[ProcessRevision] = field(default_factory=list)
    version_id: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.status = ApprovalStatus(self.status)

    def validate(self) -> None:
        """Check required fields before the process is persisted."""
        if not self.name or not self.name.strip():
            raise ValidationError("name", "name is required")
        self.wbs = validate_wbs(self.wbs)
        validate_date_range(self.start_date, self.end_date)

    @property
    def duration_days(self) -> int:
        """Inclusive planned duration."""
        return (self.end_date - self.start_date).days + 1

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def rename(self, name: str) -> None:
        if not name or not name.strip():
            raise ValidationError("name", "name is required")
        self.name = name.strip()

    def reschedule(self, start_date: date, end_date: date) -> None:
        """Replace the planned dates; only legal while editable."""
        self.require_editable("be rescheduled")
        validate_date_range(start_date, end_date)
        self.start_date = start_date
        self.end_date = end_date

    # ------------------------------------------------------------------
    # Progress tracking
    # ------------------------------------------------------------------

    @property
    def is_started(self) -> bool:
        return self.actual_start_date is not None

    @property
    def is_finished(self) -> bool:
        return self.actual_end_date is not None

    def start(self, now: Optional[datetime] = None) -> None:
        if self.is_started:
            raise InvalidTransitionError("start", "started", self.entity_label)
        self.actual_start_date = now or datetime.utcnow()

    def finish(self, now: Optional[datetime] = None) -> None:
        if not self.is_started:
            raise InvalidTransitionError("finish", "not started", self.entity_label)
        if self.is_finished:
            raise InvalidTransitionError("finish", "finished", self.entity_label)
        self.actual_end_date = now or datetime.utcnow()

    # ------------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------------

    def has_snapshot(self) -> bool:
        return self.previous_start_date is not None and self.previous_end_date is not None

    def _take_snapshot(self) -> None:
        self.previous_start_date = self.start_date
        self.previous_end_date = self.end_date

    def _restore_snapshot(self) -> None:
        self.start_date = self.previous_start_date
        self.end_date = self.previous_end_date

    def _clear_snapshot(self) -> None:
        self.previous_start_date = None
        self.previous_end_date = None

    def _make_revision(self, editor_name, revision_reason, timestamp) -> ProcessRevision:
        return ProcessRevision(
            revision_number=self.current_revision,
            start_date=self.start_date,
            end_date=self.end_date,
            editor_name=editor_name,
            revision_reason=revision_reason,
            created_at=timestamp,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'id': self.id,
            'project_id': self.project_id,
            'wbs': self.wbs,
            'name': self.name,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'actual_start_date': self.actual_start_date.isoformat() if self.actual_start_date else None,
            'actual_end_date': self.actual_end_date.isoformat() if self.actual_end_date else None,
            'status': self.status.value,
            'current_revision': self.current_revision,
            'previous_start_date': self.previous_start_date.isoformat() if self.previous_start_date else None,
            'previous_end_date': self.previous_end_date.isoformat() if self.previous_end_date else None,
            'version_id': self.version_id,
            'history': [entry.to_dict() for entry in self.history],
        }
