"""
Domain Entities - Core business objects with their lifecycle rules.
"""

from .lifecycle import ApprovalStatus, ApprovalWorkflow
from .budget_item import (
    BudgetItem, BudgetItemType, BudgetRevision,
    MONTHS_PER_YEAR, normalize_monthly_values, values_total,
)
from .project_process import ProjectProcess, ProcessRevision, validate_wbs
from .wbs import compare_wbs, parse_wbs, parent_wbs, sort_by_wbs, is_valid_wbs

__all__ = [
    'ApprovalStatus', 'ApprovalWorkflow',
    'BudgetItem', 'BudgetItemType', 'BudgetRevision',
    'MONTHS_PER_YEAR', 'normalize_monthly_values', 'values_total',
    'ProjectProcess', 'ProcessRevision', 'validate_wbs',
    'compare_wbs', 'parse_wbs', 'parent_wbs', 'sort_by_wbs', 'is_valid_wbs',
]
