"""Domain layer for Pressure-Sieve.

This module contains the core cleaning logic and the input record schema.
Domain models depend only on Pydantic and pandas.
"""

from .golden_record import MeasurementRecord
from .record_store import RecordStore

__all__ = [
    "MeasurementRecord",
    "RecordStore",
]
