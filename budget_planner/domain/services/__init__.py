"""
Domain Services - Transition orchestration, WBS rollup, actuals, reporting and CSV batches.
"""

from .budget_item_service import BudgetItemService
from .process_service import ProcessService
from .wbs_tree_service import WBSNode, build_tree, flatten_tree, build_wbs_rows
from .aggregation_service import (
    AggregationService,
    GanttWindow,
    BarPosition,
    ActualBar,
    monthly_totals,
    item_total,
    grand_total,
    cents_to_units,
    gantt_window,
    bar_position,
    actual_bar,
)
from .transaction_service import TransactionService, TransactionType
from .csv_import_service import CsvImportService, ImportResult

__all__ = [
    'BudgetItemService',
    'ProcessService',
    'WBSNode',
    'build_tree',
    'flatten_tree',
    'build_wbs_rows',
    # Reporting
    'AggregationService',
    'GanttWindow',
    'BarPosition',
    'ActualBar',
    'monthly_totals',
    'item_total',
    'grand_total',
    'cents_to_units',
    'gantt_window',
    'bar_position',
    'actual_bar',
    # Actuals
    'TransactionService',
    'TransactionType',
    # Batch
    'CsvImportService',
    'ImportResult',
]
