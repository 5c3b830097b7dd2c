"""Change tracking models.

Field-level changes made while cleaning a snapshot (operator corrections,
deletions, BMI recomputation) are described by ChangeEvent so that every edit
to the raw data can be traced back to a stage and a record ID.

Data Integrity Impact:
    - Old and new values are kept verbatim so a correction can be reviewed
    - Events are append-only; nothing edits an event after it is logged
    - personalId is never a tracked field (raw IDs must not reach the log)

Architecture:
    - Pure domain models with zero infrastructure dependencies
    - Follows Hexagonal Architecture: Domain Core is isolated from Adapters
"""

import json
import numbers
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import pandas as pd
from pydantic import BaseModel, Field

from pressure_sieve.domain.enums import ChangeType


class ChangeEvent(BaseModel):
    """A single field-level change to a record.

    Parameters:
        stage: Cleaning stage that made the change (e.g. ``pressure``, ``anthropometric``)
        record_id: ID of the record that changed
        field_name: Wire name of the field (``*`` for a record deletion)
        old_value: Value before the change
        new_value: Value after the change
        change_type: UPDATE or DELETE
        changed_at: When the change was made (UTC)
        run_id: ID of the cleaning run
        changed_by: ``operator`` for directive-driven changes, ``system`` otherwise
    """

    stage: str = Field(..., description="Cleaning stage")
    record_id: int = Field(..., description="Record ID")
    field_name: str = Field(..., description="Name of the field that changed")
    old_value: Optional[Any] = Field(None, description="Previous value (before change)")
    new_value: Optional[Any] = Field(None, description="New value (after change)")
    change_type: ChangeType = Field(ChangeType.UPDATE, description="Type of change: UPDATE or DELETE")
    changed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Timestamp when change occurred"
    )
    run_id: Optional[str] = Field(None, description="ID of the cleaning run")
    changed_by: str = Field("system", description="operator or system")

    def to_audit_dict(self) -> dict:
        """Convert to a JSON-ready dictionary for the audit log.

        Returns:
            Dictionary with serialized values
        """
        return {
            'change_id': str(uuid.uuid4()),
            'stage': self.stage,
            'record_id': self.record_id,
            'field_name': self.field_name,
            'old_value': self._serialize_value(self.old_value),
            'new_value': self._serialize_value(self.new_value),
            'change_type': self.change_type.value,
            'changed_at': self.changed_at.isoformat(),
            'run_id': self.run_id,
            'changed_by': self.changed_by,
        }

    @staticmethod
    def _serialize_value(value: Any) -> Optional[Any]:
        if value is None:
            return None
        if isinstance(value, (list, dict)):
            return json.dumps(value, ensure_ascii=False)
        if pd.isna(value):
            return None
        if isinstance(value, numbers.Real):
            number = float(value)
            return int(number) if number.is_integer() else number
        return str(value)

    model_config = {
        'frozen': True,
    }


class CleaningSummary(BaseModel):
    """Statistics of one cleaning run.

    Parameters:
        run_id: ID of the cleaning run
        source: Input snapshot
        records_loaded: Records in the raw snapshot
        test_records_removed: Platform test entries dropped after load
        pressure_flagged: Records sent to pressure adjudication
        pressure_corrected: Pressure values corrected by the operator
        pressure_deleted: Records deleted during pressure adjudication
        anthropometric_repairs: Zero-sentinel and consistency repairs per rule
        bmi_flagged: Records sent to anthropometric adjudication
        bmi_corrected: Height/weight values corrected by the operator
        bmi_deleted: Records deleted during anthropometric adjudication
        vocabulary_misses: Field -> present values not found in its vocabulary
        patients: Distinct patients after anonymization
        birth_years_corrected: Record IDs whose birth year was moved from 2054 to 1954
        incomplete_records: Records flagged incomplete
        records_exported: Records in the cleaned snapshot
    """

    run_id: str
    source: str
    records_loaded: int = 0
    test_records_removed: int = 0
    pressure_flagged: int = 0
    pressure_corrected: int = 0
    pressure_deleted: int = 0
    anthropometric_repairs: dict[str, int] = Field(default_factory=dict)
    bmi_flagged: int = 0
    bmi_corrected: int = 0
    bmi_deleted: int = 0
    vocabulary_misses: dict[str, int] = Field(default_factory=dict)
    patients: int = 0
    birth_years_corrected: list[int] = Field(default_factory=list)
    incomplete_records: int = 0
    records_exported: int = 0
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    model_config = {
        'validate_assignment': True,
    }
