"""Unit tests for the cleaning report."""

import io
import json

from rich.console import Console

from pressure_sieve.domain.cdc_models import CleaningSummary
from pressure_sieve.domain.enums import ChangeType
from pressure_sieve.infrastructure.audit import ChangeAuditLogger
from pressure_sieve.infrastructure.cleaning_report import (
    generate_cleaning_report,
    print_cleaning_report_summary,
)


def summary() -> CleaningSummary:
    return CleaningSummary(
        run_id="run_a",
        source="bloodPressure.json",
        records_loaded=7,
        test_records_removed=1,
        pressure_flagged=2,
        pressure_corrected=1,
        pressure_deleted=1,
        vocabulary_misses={"gender": 0, "method": 2},
        records_exported=5,
    )


def audit() -> ChangeAuditLogger:
    audit = ChangeAuditLogger(run_id="run_a")
    audit.log_change("pressure", 102, "sysPressureA", 1300, 130, changed_by="operator")
    audit.log_change("pressure", 103, "*", change_type=ChangeType.DELETE, changed_by="operator")
    audit.log_change("anthropometric", 105, "height", 17.5, 175, changed_by="operator")
    audit.log_change("anthropometric", 105, "bmi", 2612.2, 26.12)
    return audit


class TestGenerateCleaningReport:

    def test_report_contents(self):
        result = generate_cleaning_report(summary(), audit())

        assert result.is_success()
        report = result.value
        assert report["run_id"] == "run_a"
        assert report["summary"]["records_loaded"] == 7
        assert "run_id" not in report["summary"]
        assert report["changes"]["total"] == 4
        assert report["changes"]["by_stage"] == {"pressure": 2, "anthropometric": 2}
        assert report["changes"]["by_field"] == {"sysPressureA": 1, "height": 1, "bmi": 1}
        assert len(report["events"]) == 4

    def test_without_audit(self):
        report = generate_cleaning_report(summary()).value

        assert report["changes"]["total"] == 0
        assert report["events"] == []

    def test_saved(self, tmp_path):
        path = tmp_path / "reports" / "report.json"

        result = generate_cleaning_report(summary(), audit(), output_path=str(path))

        assert result.value["saved_to"] == str(path)
        assert json.loads(path.read_text(encoding="utf-8"))["summary"]["records_exported"] == 5

    def test_save_failure(self, tmp_path):
        result = generate_cleaning_report(summary(), output_path=str(tmp_path))

        assert result.is_failure()
        assert result.error_type == "ExportError"


class TestPrintCleaningReportSummary:

    def test_prints_counts_and_misses(self):
        output = io.StringIO()
        report = generate_cleaning_report(summary(), audit()).value

        print_cleaning_report_summary(report, console=Console(file=output, width=120, color_system=None))

        text = output.getvalue()
        assert "Records loaded:" in text
        assert "1 corrected" in text
        assert "method: 2" in text
        assert "gender" not in text
        assert "Audited changes: 4" in text
