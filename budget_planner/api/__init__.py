"""
HTTP API for the Budget Planner.
"""
