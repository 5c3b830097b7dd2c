"""JSON Data Ingestion Adapter.

This adapter implements the IngestionPort contract for the raw JSON export of the
data collection platform: an array of flat record objects.

Data Integrity Impact:
    - Every record is validated against MeasurementRecord before any cleaning step
    - Schema violations are collected for the whole snapshot and reported at once
    - No record is dropped at load time; a bad snapshot aborts the run
    - Platform test records (ID below min_record_id) keep only their ID and are
      not validated, since the pipeline discards them unread

Architecture:
    - Implements IngestionPort (Hexagonal Architecture)
    - Isolated from domain core - only depends on ports and models
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from pressure_sieve.domain.golden_record import (
    CATEGORICAL_FIELDS,
    NUMERIC_FIELDS,
    PERSONAL_ID_FIELD,
    RECORD_ID_FIELD,
    REQUIRED_COLUMNS,
    MeasurementRecord,
)
from pressure_sieve.domain.ports import (
    IngestionPort,
    SourceNotFoundError,
    UnsupportedSourceError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class JSONIngester(IngestionPort):
    """JSON ingestion adapter for the raw blood-pressure snapshot.

    Parameters:
        max_file_size: Largest accepted file in bytes (default: 512MB)
        min_record_id: Records with a lower ID are test entries and skip validation
    """

    def __init__(self, max_file_size: int = 512 * 1024 * 1024, min_record_id: Optional[int] = None):
        self.max_file_size = max_file_size
        self.min_record_id = min_record_id
        self.adapter_name = "json_ingester"

    def can_ingest(self, source: str) -> bool:
        if not source:
            return False
        return Path(source).suffix.lower() == '.json'

    def ingest(self, source: str) -> tuple[pd.DataFrame, list[str]]:
        """Load, validate and tabulate the snapshot.

        Steps:
        1. Parse the JSON document and extract the record array
        2. Validate each record against MeasurementRecord (collecting all errors)
        3. Build a DataFrame in input order with typed numeric columns

        Parameters:
            source: Path to JSON file

        Returns:
            tuple[pd.DataFrame, list[str]]: Records and the input key order

        Raises:
            SourceNotFoundError: If source file doesn't exist or cannot be read
            UnsupportedSourceError: If source is not valid JSON or not an array of objects
            ValidationError: If any record violates the input schema
        """
        source_path = Path(source)
        if not source_path.exists():
            raise SourceNotFoundError(
                f"JSON source not found: {source}",
                source=source
            )

        file_size = source_path.stat().st_size
        if file_size > self.max_file_size:
            raise UnsupportedSourceError(
                f"JSON source too large: {file_size} bytes (limit {self.max_file_size})",
                source=source,
                adapter=self.adapter_name
            )

        try:
            with open(source_path, 'r', encoding='utf-8') as f:
                raw_data = json.load(f)
        except json.JSONDecodeError as e:
            raise UnsupportedSourceError(
                f"Invalid JSON format in {source}: {str(e)}",
                source=source,
                adapter=self.adapter_name
            )
        except OSError as e:
            raise SourceNotFoundError(
                f"Cannot read JSON source {source}: {str(e)}",
                source=source
            )

        records = self._extract_records(raw_data, source)
        field_order = self._field_order(records)

        validated, errors = self._validate_records(records, self.min_record_id)
        if errors:
            for position, message in errors.items():
                logger.error(f"Schema violation in record #{position}: {message}")
            raise ValidationError(
                f"{len(errors)} of {len(records)} records in {source} violate the input schema",
                source=source,
                details=errors
            )

        frame = self._to_dataframe(validated, field_order)
        logger.info(f"Validated {len(frame)} records from {source}")
        return frame, field_order

    def _extract_records(self, raw_data: Any, source: str) -> list[dict]:
        """Extract the record array from the parsed document.

        The snapshot is a top-level array of record objects.
        """
        if not isinstance(raw_data, list):
            raise UnsupportedSourceError(
                f"Unsupported JSON structure: expected array of records, got {type(raw_data).__name__}",
                source=source,
                adapter=self.adapter_name
            )
        for position, record in enumerate(raw_data):
            if not isinstance(record, dict):
                raise UnsupportedSourceError(
                    f"Record #{position} is {type(record).__name__}, expected object",
                    source=source,
                    adapter=self.adapter_name
                )
        return raw_data

    @staticmethod
    def _field_order(records: list[dict]) -> list[str]:
        # First-seen key order across the snapshot
        order: dict[str, None] = {}
        for record in records:
            for key in record:
                order.setdefault(key, None)
        return list(order)

    @staticmethod
    def _test_record_id(raw_record: dict, min_record_id: Optional[int]) -> Optional[int]:
        """ID of a test record below the cut-off, None for anything else."""
        if min_record_id is None:
            return None
        value = raw_record.get(RECORD_ID_FIELD)
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return None
        try:
            record_id = int(value)
        except (ValueError, OverflowError):
            return None
        return record_id if record_id < min_record_id else None

    @classmethod
    def _validate_records(
        cls, records: list[dict], min_record_id: Optional[int] = None
    ) -> tuple[list[dict], dict[int, str]]:
        validated = []
        errors: dict[int, str] = {}
        seen_ids: dict[int, int] = {}
        for position, raw_record in enumerate(records):
            test_id = cls._test_record_id(raw_record, min_record_id)
            if test_id is not None:
                validated.append({RECORD_ID_FIELD: test_id})
                continue
            try:
                model = MeasurementRecord.model_validate(raw_record)
            except PydanticValidationError as e:
                # Report locations only; input values may contain PII
                problems = "; ".join(
                    f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                )
                errors[position] = problems
                continue
            if model.record_id in seen_ids:
                errors[position] = (
                    f"duplicate record id {model.record_id} "
                    f"(first seen in record #{seen_ids[model.record_id]})"
                )
                continue
            seen_ids[model.record_id] = position
            validated.append(model.model_dump(by_alias=True, exclude_unset=True))
        return validated, errors

    @staticmethod
    def _to_dataframe(records: list[dict], field_order: list[str]) -> pd.DataFrame:
        frame = pd.DataFrame.from_records(records)
        for column in REQUIRED_COLUMNS:
            if column not in frame.columns:
                logger.warning(f"Field '{column}' absent from every record; treated as missing")
                frame[column] = None
        for column in NUMERIC_FIELDS:
            frame[column] = pd.to_numeric(frame[column]).astype(float)
        for column in CATEGORICAL_FIELDS + (PERSONAL_ID_FIELD,):
            frame[column] = frame[column].astype(object).where(frame[column].notna(), None)
        frame[RECORD_ID_FIELD] = frame[RECORD_ID_FIELD].astype(int)
        ordered = [c for c in field_order if c in frame.columns]
        ordered += [c for c in frame.columns if c not in ordered]
        return frame[ordered]
