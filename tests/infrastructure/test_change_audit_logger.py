"""Unit tests for ChangeAuditLogger and ChangeEvent."""

import json
import math

import numpy as np
import pytest

from pressure_sieve.domain.cdc_models import ChangeEvent
from pressure_sieve.domain.enums import ChangeType
from pressure_sieve.domain.ports import ExportError
from pressure_sieve.infrastructure.audit import ChangeAuditLogger


class TestChangeEvent:

    def test_audit_dict(self):
        event = ChangeEvent(
            stage="pressure", record_id=104, field_name="sysPressureA",
            old_value=np.float64(1300.0), new_value=130.5, changed_by="operator"
        )

        entry = event.to_audit_dict()

        assert entry['old_value'] == 1300
        assert entry['new_value'] == 130.5
        assert entry['change_type'] == "UPDATE"
        assert len(entry['change_id']) == 36
        assert entry['changed_at'].endswith("+00:00")

    def test_missing_values_serialize_to_none(self):
        event = ChangeEvent(
            stage="anthropometric", record_id=104, field_name="bmi",
            old_value=math.nan, new_value=None
        )

        entry = event.to_audit_dict()

        assert entry['old_value'] is None
        assert entry['new_value'] is None


class TestChangeAuditLogger:

    def test_generated_run_id(self):
        assert ChangeAuditLogger().run_id.startswith("run_")
        assert ChangeAuditLogger().run_id != ChangeAuditLogger().run_id

    def test_log_change(self):
        audit = ChangeAuditLogger(run_id="run_a")

        audit.log_change("pressure", 104, "sysPressureA", 1300, 130, changed_by="operator")
        audit.log_change("pressure", 105, "*", change_type=ChangeType.DELETE, changed_by="operator")

        logs = audit.get_logs()
        assert len(logs) == 2
        assert logs[1]['change_type'] == "DELETE"
        assert {entry['run_id'] for entry in logs} == {"run_a"}

    def test_logs_are_copied(self):
        audit = ChangeAuditLogger()
        audit.log_change("pressure", 104, "sysPressureA", 1300, 130)

        audit.get_logs().clear()

        assert len(audit.get_logs()) == 1

    def test_log_change_event(self):
        audit = ChangeAuditLogger(run_id="run_a")

        audit.log_change_event(ChangeEvent(stage="anthropometric", record_id=105, field_name="height"))

        assert [(e["stage"], e["record_id"], e["run_id"]) for e in audit.get_logs()] == [
            ("anthropometric", 105, "run_a")
        ]

    def test_write_json(self, tmp_path):
        audit = ChangeAuditLogger(run_id="run_a")
        audit.log_change("pressure", 104, "sysPressureA", 1300, 130)

        path = audit.write_json(tmp_path / "audit" / "log.json")

        entries = json.loads(path.read_text(encoding="utf-8"))
        assert entries[0]['record_id'] == 104
        assert entries[0]['run_id'] == "run_a"

    def test_write_json_failure(self, tmp_path):
        with pytest.raises(ExportError):
            ChangeAuditLogger().write_json(tmp_path)
