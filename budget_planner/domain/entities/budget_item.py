"""
Budget Item Entity - monthly cost/revenue line with approval lifecycle.

Values are whole currency units keyed by month index (0-11). Missing months
count as zero.
"""
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Mapping, Optional

from ..exceptions import ValidationError
from .lifecycle import ApprovalStatus, ApprovalWorkflow

MONTHS_PER_YEAR = 12


class BudgetItemType:
    COST = "cost"
    REVENUE = "revenue"

    ALL = (COST, REVENUE)


def _parse_amount(month: int, raw) -> int:
    """One monthly amount as an exact int; blank means 0."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return 0
    if isinstance(raw, bool):
        raise ValidationError("monthly_values", f"month {month} amount must be a number")
    if isinstance(raw, int):
        return raw

    if isinstance(raw, float):
        if math.isnan(raw):
            raise ValidationError("monthly_values", f"month {month} amount is not a number")
        if math.isinf(raw) or not raw.is_integer():
            raise ValidationError("monthly_values", f"month {month} amount must be a whole number")
        return int(raw)

    try:
        number = Decimal(str(raw).strip())
    except InvalidOperation:
        raise ValidationError("monthly_values", f"month {month} amount '{raw}' is not a number")
    if number.is_nan():
        raise ValidationError("monthly_values", f"month {month} amount is not a number")
    if number.is_infinite() or number != number.to_integral_value():
        raise ValidationError("monthly_values", f"month {month} amount must be a whole number")
    return int(number)


def normalize_monthly_values(values: Optional[Mapping], months: int = MONTHS_PER_YEAR) -> Dict[int, int]:
    """
    Coerce a month map into {int month index: int amount}.

    Accepts string keys ("0".."11") as stored in JSON and integral floats
    as produced by CSV parsing.

    Raises:
        ValidationError: On out-of-range months, negative or fractional
            amounts, or non-numeric input.
    """
    if values is None:
        return {}

    normalized = {}
    for key, raw in values.items():
        try:
            month = int(key)
        except (TypeError, ValueError):
            raise ValidationError("monthly_values", f"month key '{key}' is not an integer")
        if not 0 <= month < months:
            raise ValidationError("monthly_values", f"month {month} is outside 0-{months - 1}")

        amount = _parse_amount(month, raw)

        if amount < 0:
            raise ValidationError("monthly_values", f"month {month} amount cannot be negative")
        normalized[month] = amount
    return normalized


def values_total(values: Mapping[int, int]) -> int:
    """Sum of all monthly amounts."""
    return sum(values.values())


@dataclass
class BudgetRevision:
    """Immutable history entry captured by revise()."""
    revision_number: int
    monthly_values: Dict[int, int]
    editor_name: str
    revision_reason: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'revision_number': self.revision_number,
            'monthly_values': dict(self.monthly_values),
            'editor_name': self.editor_name,
            'revision_reason': self.revision_reason,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class BudgetItem(ApprovalWorkflow):
    """
    Budget line item owned by a cost group or a project phase.

    Attributes:
        id: Unique identifier (None until persisted)
        name: Display name
        item_type: 'cost' or 'revenue'
        cost_group_id: Parent cost group (department budgets)
        project_phase_id: Parent phase (project budgets)
        year: Budget year
        monthly_values: Month index -> amount in whole currency units
        status: Approval state
        current_revision: Number of committed revisions still in effect
        previous_approved_values: Baseline kept while a revision is open
        history: Revision log, oldest first
        version_id: Optimistic locking counter
    """

    entity_label = "Budget item"

    id: Optional[str] = None
    name: str = ""
    item_type: str = BudgetItemType.COST
    cost_group_id: Optional[str] = None
    project_phase_id: Optional[str] = None
    year: int = 2025
    monthly_values: Dict[int, int] = field(default_factory=dict)
    status: ApprovalStatus = ApprovalStatus.DRAFT
    current_revision: int = 0
    previous_approved_values: Optional[Dict[int, int]] = None
    history: List[BudgetRevision] = field(default_factory=list)
    sort_order: int = 0
    version_id: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.status = ApprovalStatus(self.status)
        self.monthly_values = normalize_monthly_values(self.monthly_values)
        if self.previous_approved_values is not None:
            self.previous_approved_values = normalize_monthly_values(self.previous_approved_values)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Check required fields before the item is persisted."""
        if not self.name or not self.name.strip():
            raise ValidationError("name", "name is required")
        if self.item_type not in BudgetItemType.ALL:
            raise ValidationError("item_type", f"must be one of {', '.join(BudgetItemType.ALL)}")
        if bool(self.cost_group_id) == bool(self.project_phase_id):
            raise ValidationError(
                "parent", "exactly one of cost_group_id or project_phase_id is required"
            )

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def value_for(self, month: int) -> int:
        return self.monthly_values.get(month, 0)

    @property
    def total(self) -> int:
        return values_total(self.monthly_values)

    def locked_months(self, today: date) -> List[int]:
        """Month indexes of this item's year that lie before today's month."""
        if today.year > self.year:
            return list(range(MONTHS_PER_YEAR))
        if today.year < self.year:
            return []
        return list(range(today.month - 1))

    def save(self, monthly_values: Mapping, today: Optional[date] = None,
             lock_past_months: bool = False) -> None:
        """
        Replace the monthly values wholesale.

        Args:
            monthly_values: Full month map supplied by the editor
            today: Reference date for the past-month lock
            lock_past_months: Refuse changes to months that already passed

        Raises:
            InvalidTransitionError: Unless the item is editable
            ValidationError: On bad values or edits to locked months
        """
        self.require_editable("be edited")
        values = normalize_monthly_values(monthly_values)

        if lock_past_months:
            for month in self.locked_months(today or date.today()):
                if values.get(month, 0) != self.value_for(month):
                    raise ValidationError(
                        "monthly_values", f"month {month} is in the past and cannot be changed"
                    )

        self.monthly_values = values

    # ------------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------------

    def has_snapshot(self) -> bool:
        return self.previous_approved_values is not None

    def _take_snapshot(self) -> None:
        self.previous_approved_values = dict(self.monthly_values)

    def _restore_snapshot(self) -> None:
        self.monthly_values = dict(self.previous_approved_values)

    def _clear_snapshot(self) -> None:
        self.previous_approved_values = None

    def _make_revision(self, editor_name, revision_reason, timestamp) -> BudgetRevision:
        return BudgetRevision(
            revision_number=self.current_revision,
            monthly_values=dict(self.monthly_values),
            editor_name=editor_name,
            revision_reason=revision_reason,
            created_at=timestamp,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'id': self.id,
            'name': self.name,
            'item_type': self.item_type,
            'cost_group_id': self.cost_group_id,
            'project_phase_id': self.project_phase_id,
            'year': self.year,
            'monthly_values': dict(self.monthly_values),
            'previous_approved_values': (
                dict(self.previous_approved_values)
                if self.previous_approved_values is not None else None
            ),
            'status': self.status.value,
            'current_revision': self.current_revision,
            'total': self.total,
            'version_id': self.version_id,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'history': [entry.to_dict() for entry in self.history],
        }
