"""Record Store - in-memory ordered collection of measurement records.

The store wraps a pandas DataFrame with one row per patient visit. The row
label is always the record's current position (0..n-1); every removal resets
it, so directive indices must be applied before records are removed.

Architecture:
    - Single logical owner (the pipeline driver) mutates the store in place
    - No external effect until the Exporter serializes the frame
"""

import logging
from typing import Any, Callable, Iterable, Optional, Union

import pandas as pd

from pressure_sieve.domain.golden_record import RECORD_ID_FIELD

logger = logging.getLogger(__name__)

RecordPredicate = Callable[[pd.DataFrame], pd.Series]


class RecordStore:
    """Ordered collection of records backed by a DataFrame.

    Parameters:
        frame: Records, one per row, columns named with wire names
        field_order: Column order to use on export (defaults to the frame's columns)

    Example Usage:
        ```python
        store = RecordStore.load("bloodPressure.json")
        store.sort_by_id()
        store.remove_test_records(min_record_id=100)
        ```
    """

    def __init__(self, frame: pd.DataFrame, field_order: Optional[list[str]] = None):
        self._frame = frame.reset_index(drop=True)
        order = list(field_order) if field_order else list(frame.columns)
        # Columns added by the ingester for absent required fields go last
        order.extend(c for c in self._frame.columns if c not in order)
        self._field_order = order

    @classmethod
    def load(cls, source: str, ingester=None) -> 'RecordStore':
        """Load a raw snapshot into a new store.

        Parameters:
            source: Path to the raw snapshot
            ingester: IngestionPort implementation (selected by extension if None)

        Returns:
            RecordStore: Store holding every record in input order

        Raises:
            SourceNotFoundError, UnsupportedSourceError, ValidationError: from the ingester
        """
        if ingester is None:
            from pressure_sieve.adapters.ingesters import get_adapter
            ingester = get_adapter(source)
        frame, field_order = ingester.ingest(source)
        logger.info(f"Loaded {len(frame)} records from {source}")
        return cls(frame, field_order)

    @property
    def frame(self) -> pd.DataFrame:
        """The underlying DataFrame (mutations are visible to the store)."""
        return self._frame

    @property
    def field_order(self) -> list[str]:
        return list(self._field_order)

    def __len__(self) -> int:
        return len(self._frame)

    def record_ids(self) -> list[int]:
        return self._frame[RECORD_ID_FIELD].tolist()

    def get(self, index: int) -> dict:
        """Return the record at ``index`` as a dict in field order."""
        row = self._frame.loc[index]
        return {name: row[name] for name in self._field_order if name in row.index}

    def get_value(self, index: int, field: str) -> Any:
        return self._frame.at[index, field]

    def set_value(self, index: int, field: str, value: Any) -> None:
        """Overwrite one field of one record in place.

        Raises:
            KeyError: If the record index or field does not exist
        """
        if field not in self._frame.columns:
            raise KeyError(f"Unknown field: {field}")
        if index not in self._frame.index:
            raise KeyError(f"Unknown record index: {index}")
        self._frame.at[index, field] = value

    def sort_by_id(self) -> None:
        """Stable sort ascending by record ID."""
        self._frame = self._frame.sort_values(
            RECORD_ID_FIELD, kind="stable"
        ).reset_index(drop=True)

    def remove(self, selector: Union[RecordPredicate, Iterable[int]]) -> int:
        """Remove records matching a predicate or a set of indices.

        Survivors keep their relative order; the positional index is reset.

        Parameters:
            selector: Callable taking the frame and returning a boolean mask,
                or an iterable of record indices

        Returns:
            int: Number of records removed
        """
        if callable(selector):
            mask = selector(self._frame).astype(bool)
        else:
            indices = set(selector)
            unknown = indices - set(self._frame.index)
            if unknown:
                raise KeyError(f"Unknown record indices: {sorted(unknown)}")
            mask = self._frame.index.isin(indices)
        removed = int(mask.sum())
        self._frame = self._frame.loc[~mask].reset_index(drop=True)
        return removed

    def remove_prefix(self, n: int) -> int:
        """Discard the first ``n`` records."""
        if n < 0:
            raise ValueError(f"Prefix length must be non-negative, got {n}")
        n = min(n, len(self._frame))
        self._frame = self._frame.iloc[n:].reset_index(drop=True)
        return n

    def remove_test_records(self, min_record_id: int = 100) -> int:
        """Drop platform test entries, i.e. every record with ID below ``min_record_id``."""
        removed = self.remove(lambda frame: frame[RECORD_ID_FIELD] < min_record_id)
        logger.info(f"Removed {removed} test records (record ID < {min_record_id})")
        return removed

    def add_field(self, name: str, values: Union[pd.Series, list, Any]) -> None:
        """Append a new field at the end of the field order."""
        self._frame[name] = values
        if name not in self._field_order:
            self._field_order.append(name)

    def assign_field(self, name: str, values: Union[pd.Series, list]) -> None:
        """Overwrite every value of an existing field, keeping its position."""
        if name not in self._frame.columns:
            raise KeyError(f"Unknown field: {name}")
        self._frame[name] = values

    def replace_field(self, old: str, new: str, values: Union[pd.Series, list]) -> None:
        """Replace ``old`` by ``new`` at the same ordinal position."""
        if old not in self._field_order:
            raise KeyError(f"Unknown field: {old}")
        if old == new:
            self.assign_field(old, values)
            return
        self._frame[new] = values
        self._frame = self._frame.drop(columns=[old])
        position = self._field_order.index(old)
        self._field_order[position] = new

    def drop_field(self, name: str) -> None:
        if name in self._frame.columns:
            self._frame = self._frame.drop(columns=[name])
        if name in self._field_order:
            self._field_order.remove(name)

    def to_records(self) -> list[dict]:
        """All records as dicts, in order."""
        return [self.get(index) for index in self._frame.index]
