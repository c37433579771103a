"""
Budget Planner - Budget planning and approval engine.

Departments and projects plan monthly budget items and schedule processes
through a draft -> pending -> approved workflow with revision history.
"""

__version__ = "1.0.0"
