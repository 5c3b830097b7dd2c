"""Adapters layer for Pressure-Sieve.

This module contains input/output adapters that interface with external systems:
the raw JSON snapshot, the operator (terminal or replay file) and the cleaned export.
Adapters implement Port interfaces defined in the domain layer.
"""
