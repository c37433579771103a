"""
CLI Module - Command-line interface for the Budget Planner.

Provides management commands for:
- Budget item CSV import/export
- Process CSV import/export
"""

from .data_commands import import_budget, export_budget, import_processes, export_processes, register_commands

__all__ = ['import_budget', 'export_budget', 'import_processes', 'export_processes', 'register_commands']
