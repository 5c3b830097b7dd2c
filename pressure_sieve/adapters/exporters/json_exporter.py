"""JSON Export Adapter.

Writes the cleaned collection as a pretty-printed JSON array in the field
order held by the RecordStore. Values are normalized for JSON: missing values
become ``null``, whole-number floats become integers and numpy scalars become
native Python types.
"""

import json
import logging
import math
import numbers
from pathlib import Path
from typing import Any, Union

import numpy as np
import pandas as pd

from pressure_sieve.domain.ports import ExportError, ExportPort
from pressure_sieve.domain.record_store import RecordStore

logger = logging.getLogger(__name__)


def to_json_value(value: Any) -> Any:
    """Convert a cell value to a JSON-native value."""
    if value is None:
        return None
    if isinstance(value, (list, dict)):
        return value
    if pd.isna(value):
        return None
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        number = float(value)
        if math.isfinite(number) and number.is_integer():
            return int(number)
        return number
    return value


class JSONExporter(ExportPort):
    """Serialize a RecordStore to pretty-printed JSON.

    Parameters:
        indent: Indentation width (default 2)
    """

    def __init__(self, indent: int = 2):
        self.indent = indent

    def serialize(self, store: RecordStore) -> str:
        records = [
            {name: to_json_value(value) for name, value in record.items()}
            for record in store.to_records()
        ]
        return json.dumps(records, indent=self.indent, ensure_ascii=False)

    def export(self, store: RecordStore, destination: Union[str, Path]) -> Path:
        """Write the store to ``destination``.

        Raises:
            ExportError: If the file cannot be written
        """
        path = Path(destination)
        text = self.serialize(store)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(text)
        except OSError as e:
            raise ExportError(
                f"Cannot write cleaned snapshot to {path}: {str(e)}",
                destination=str(path)
            ) from e
        logger.info(f"Exported {len(store)} records to {path}")
        return path
