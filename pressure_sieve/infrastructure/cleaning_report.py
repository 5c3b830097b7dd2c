"""Cleaning Report Generator.

This module builds a report of one cleaning run from its summary statistics
and change audit trail. The report documents how many records each stage
removed or changed, for the dataset's technical-validation write-up.
"""

import json
from collections import Counter
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from pressure_sieve.domain.cdc_models import CleaningSummary
from pressure_sieve.domain.ports import Result
from pressure_sieve.infrastructure.audit import ChangeAuditLogger


def generate_cleaning_report(
    summary: CleaningSummary,
    audit_logger: Optional[ChangeAuditLogger] = None,
    output_path: Optional[str] = None
) -> Result[dict]:
    """Generate a cleaning report.

    Parameters:
        summary: Statistics of the run
        audit_logger: Change audit trail of the run (optional)
        output_path: Optional path to save report as JSON file

    Returns:
        Result[dict]: Report dictionary or error
    """
    logs = audit_logger.get_logs() if audit_logger is not None else []
    changes_by_field = Counter(
        entry['field_name'] for entry in logs if entry['change_type'] == "UPDATE"
    )
    changes_by_stage = Counter(entry['stage'] for entry in logs)

    report = {
        "run_id": summary.run_id,
        "source": summary.source,
        "started_at": summary.started_at.isoformat(),
        "finished_at": summary.finished_at.isoformat() if summary.finished_at else None,
        "summary": summary.model_dump(mode="json", exclude={"run_id", "source", "started_at", "finished_at"}),
        "changes": {
            "total": len(logs),
            "by_stage": dict(changes_by_stage),
            "by_field": dict(changes_by_field),
        },
        "events": logs,
    }

    if output_path:
        try:
            output_file = Path(output_path)
            output_file.parent.mkdir(parents=True, exist_ok=True)

            with open(output_file, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)

            return Result.success_result({
                **report,
                "saved_to": str(output_file)
            })
        except OSError as e:
            return Result.failure_result(
                f"Failed to save report to {output_path}: {str(e)}",
                error_type="ExportError",
                error_details={"path": str(output_path)}
            )

    return Result.success_result(report)


def print_cleaning_report_summary(report: dict, console: Optional[Console] = None) -> None:
    """Print a human-readable summary of the cleaning report."""
    console = console or Console()
    summary = report.get('summary', {})

    table = Table(title=f"Cleaning report - {report.get('run_id')}", show_header=False, box=None, padding=(0, 2))
    table.add_row("Records loaded:", f"{summary.get('records_loaded', 0):,}")
    table.add_row("Test records removed:", f"{summary.get('test_records_removed', 0):,}")
    table.add_row(
        "Pressure flagged:",
        f"{summary.get('pressure_flagged', 0):,} "
        f"([green]{summary.get('pressure_corrected', 0)} corrected[/green], "
        f"[red]{summary.get('pressure_deleted', 0)} deleted[/red])"
    )
    table.add_row(
        "BMI flagged:",
        f"{summary.get('bmi_flagged', 0):,} "
        f"([green]{summary.get('bmi_corrected', 0)} corrected[/green], "
        f"[red]{summary.get('bmi_deleted', 0)} deleted[/red])"
    )
    table.add_row("Patients:", f"{summary.get('patients', 0):,}")
    table.add_row("Birth years corrected:", str(len(summary.get('birth_years_corrected', []))))
    table.add_row("Incomplete records:", f"{summary.get('incomplete_records', 0):,}")
    table.add_row("Records exported:", f"[bold]{summary.get('records_exported', 0):,}[/bold]")
    console.print(table)

    misses = {name: count for name, count in summary.get('vocabulary_misses', {}).items() if count}
    if misses:
        console.print("\n[yellow]⚠[/yellow] Values outside vocabulary (exported as null):")
        for name, count in sorted(misses.items()):
            console.print(f"  {name}: {count}")

    changes = report.get('changes', {})
    if changes.get('total'):
        console.print(f"\nAudited changes: {changes['total']}")
        for name, count in sorted(changes.get('by_field', {}).items()):
            console.print(f"  {name}: {count}")
