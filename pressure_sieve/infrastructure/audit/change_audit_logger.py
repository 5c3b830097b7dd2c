"""Change Audit Logger.

This module provides a centralized logging mechanism for tracking field-level
changes made while cleaning a snapshot. Each change is logged with stage,
record ID, field name, old/new values and a timestamp.

Data Integrity Impact:
    - Creates an append-only trail of every operator correction and deletion
    - Lets a reviewer reconstruct the raw value of any corrected field
    - Can be written to a JSON file next to the cleaned export

Architecture:
    - Infrastructure layer component
    - Called from domain services (CorrectionApplier) through a plain interface
"""

import json
import logging
import uuid
from pathlib import Path
from typing import List, Optional, Union

from pressure_sieve.domain.cdc_models import ChangeEvent
from pressure_sieve.domain.enums import ChangeType
from pressure_sieve.domain.ports import ExportError

logger = logging.getLogger(__name__)


class ChangeAuditLogger:
    """Logger for tracking field-level change events.

    Keeps an in-memory list of audit entries for one cleaning run.

    Example Usage:
        ```python
        audit = ChangeAuditLogger()
        audit.log_change(
            stage="pressure",
            record_id=1234,
            field_name="sysPressureA",
            old_value=1200,
            new_value=120,
            changed_by="operator"
        )
        audit.write_json("reports/audit_log.json")
        ```
    """

    def __init__(self, run_id: Optional[str] = None):
        self._logs: List[dict] = []
        self._run_id = run_id or f"run_{uuid.uuid4().hex[:12]}"

    @property
    def run_id(self) -> str:
        return self._run_id

    def log_change(
        self,
        stage: str,
        record_id: int,
        field_name: str,
        old_value=None,
        new_value=None,
        change_type: ChangeType = ChangeType.UPDATE,
        changed_by: str = "system"
    ) -> None:
        """Log a single change event.

        Parameters:
            stage: Cleaning stage that made the change
            record_id: ID of the record that changed
            field_name: Name of the field that changed
            old_value: Previous value (before change)
            new_value: New value (after change)
            change_type: UPDATE or DELETE
            changed_by: ``operator`` or ``system``
        """
        self.log_change_event(ChangeEvent(
            stage=stage,
            record_id=record_id,
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
            change_type=change_type,
            changed_by=changed_by,
        ))

    def log_change_event(self, change_event: ChangeEvent) -> None:
        """Log a ChangeEvent object, stamping it with this run's ID."""
        audit_dict = change_event.to_audit_dict()
        audit_dict['run_id'] = self._run_id
        self._logs.append(audit_dict)
        logger.debug(
            f"Logged change: {change_event.stage} record {change_event.record_id}."
            f"{change_event.field_name} ({change_event.change_type.value})"
        )

    def get_logs(self) -> List[dict]:
        """Get all logged change events.

        Returns:
            List of change log entries
        """
        return self._logs.copy()

    def write_json(self, path: Union[str, Path]) -> Path:
        """Write the audit trail as a pretty-printed JSON array.

        Raises:
            ExportError: If the file cannot be written
        """
        destination = Path(path)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with open(destination, 'w', encoding='utf-8') as f:
                json.dump(self._logs, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ExportError(
                f"Cannot write audit log to {destination}: {str(e)}",
                destination=str(destination)
            ) from e
        logger.info(f"Wrote {len(self._logs)} audit entries to {destination}")
        return destination
