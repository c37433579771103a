"""
Domain Layer - Approval lifecycle, WBS hierarchy and budget aggregation.

This module contains:
- entities/: Budget items, project processes and the shared approval workflow
- services/: Transition orchestration, WBS tree rollup, reporting, CSV batches
"""

from .entities import (
    ApprovalStatus, BudgetItem, BudgetItemType, BudgetRevision,
    ProjectProcess, ProcessRevision, compare_wbs,
)

__all__ = [
    'ApprovalStatus', 'BudgetItem', 'BudgetItemType', 'BudgetRevision',
    'ProjectProcess', 'ProcessRevision', 'compare_wbs',
]
