"""
Infrastructure Layer - Persistence adapters for the domain.
"""
