"""Command Line Interface for Pressure-Sieve.

This module provides a CLI using Typer for running the cleaning pipeline on a
raw blood-pressure snapshot, interactively or by replaying saved directives.

Data Integrity Impact:
    - Nothing is exported when any stage fails
    - Operator decisions can be saved and replayed for a reproducible run
    - A cleaning report and audit trail document every change
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from pressure_sieve import __version__
from pressure_sieve.adapters.adjudicators import ReplayAdjudicator, TerminalAdjudicator
from pressure_sieve.adapters.ingesters import get_adapter
from pressure_sieve.domain.ports import CleaningError, ValidationError
from pressure_sieve.domain.record_store import RecordStore
from pressure_sieve.domain.services import AnthropometricRepair, RangeValidator
from pressure_sieve.infrastructure.cleaning_report import generate_cleaning_report, print_cleaning_report_summary
from pressure_sieve.infrastructure.logging_config import setup_logging
from pressure_sieve.infrastructure.settings import settings
from pressure_sieve.main import process_cleaning

# Initialize Typer app and Rich console
app = typer.Typer(
    name="pressure-sieve",
    help="Pressure-Sieve: blood-pressure dataset cleaning pipeline",
    add_completion=False
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    setup_logging(use_json=settings.log_json, log_level="DEBUG" if verbose else settings.log_level)


def _print_error(e: Exception) -> None:
    console.print(f"\n[red]✗[/red] {type(e).__name__}: {str(e)}")
    if isinstance(e, ValidationError):
        for position, message in list(e.details.items())[:20]:
            console.print(f"  [dim]#{position}[/dim] {message}")
        if len(e.details) > 20:
            console.print(f"  [dim]... and {len(e.details) - 20} more[/dim]")


@app.command()
def clean(
    input_file: Path = typer.Argument(..., help="Raw snapshot (JSON)", exists=True, dir_okay=False),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Cleaned snapshot path"),
    replay: Optional[Path] = typer.Option(None, "--replay", help="Directives file to replay", exists=True, dir_okay=False),
    save_directives_to: Optional[Path] = typer.Option(None, "--save-directives", help="Save operator directives to this file"),
    audit_log: Optional[Path] = typer.Option(None, "--audit-log", help="Write the change audit trail to this file"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write the cleaning report to this file"),
    strict_vocabulary: bool = typer.Option(False, "--strict-vocabulary", help="Abort on categorical values outside the vocabulary"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Clean a raw snapshot and export it as JSON.

    Flagged records are shown one by one for a decision (0 delete, 2 correct).
    With --replay, saved directives are applied first and only records they do
    not cover are asked for.

    Examples:
        pressure-sieve clean bloodPressure.json
        pressure-sieve clean bloodPressure.json --save-directives decisions.json
        pressure-sieve clean bloodPressure.json --replay decisions.json -o cleaned.json
    """
    _configure_logging(verbose)
    output = output or Path(settings.output_file)

    console.print("\n[bold blue]Pressure-Sieve[/bold blue]")
    console.print(f"[dim]Input file:[/dim] {input_file}")
    console.print(f"[dim]Output file:[/dim] {output}")
    if replay:
        console.print(f"[dim]Replaying:[/dim] {replay}")
    console.print()

    try:
        config = settings.cleaning_config
        if strict_vocabulary:
            config = config.model_copy(update={"strict_vocabulary": True})

        adjudicator = TerminalAdjudicator(console=console)
        if replay:
            adjudicator = ReplayAdjudicator(replay, fallback=adjudicator)

        summary, pipeline = process_cleaning(
            source=str(input_file),
            output=output,
            adjudicator=adjudicator,
            config=config,
            directives_path=save_directives_to,
        )

        if save_directives_to:
            console.print(f"[green]✓[/green] Directives saved: {save_directives_to}")
        if audit_log:
            pipeline.audit_logger.write_json(audit_log)
            console.print(f"[green]✓[/green] Audit log saved: {audit_log}")

        console.print("\n[bold]Cleaning Summary:[/bold]")
        report_path = report
        if report_path is None and settings.save_cleaning_report:
            report_path = Path(settings.report_dir) / f"cleaning_report_{summary.run_id}.json"
        report_result = generate_cleaning_report(
            summary,
            pipeline.audit_logger,
            output_path=str(report_path) if report_path else None
        )
        if report_result.is_success():
            print_cleaning_report_summary(report_result.value, console)
            if report_result.value.get("saved_to"):
                console.print(f"\n[green]✓[/green] Cleaning report saved: {report_result.value['saved_to']}")
        else:
            console.print(f"[yellow]⚠[/yellow] Failed to save cleaning report: {report_result.error}")

        console.print(f"\n[green]✓[/green] Cleaned snapshot written: {output}")

    except KeyboardInterrupt:
        console.print("\n[yellow]⚠[/yellow] Cleaning interrupted by user; nothing was exported")
        raise typer.Exit(code=130)
    except EOFError:
        console.print("\n[red]✗[/red] Operator input ended before every flagged record had a directive")
        raise typer.Exit(code=1)
    except CleaningError as e:
        _print_error(e)
        if save_directives_to and save_directives_to.exists():
            console.print(f"[dim]Directives entered so far are in {save_directives_to}[/dim]")
        if verbose:
            console.print_exception()
        raise typer.Exit(code=1)


@app.command()
def check(
    input_file: Path = typer.Argument(..., help="Raw snapshot (JSON)", exists=True, dir_okay=False),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Validate a snapshot without prompting and list the records that would be flagged.

    Exits with code 1 if any record needs a decision.
    """
    _configure_logging(verbose)
    config = settings.cleaning_config

    try:
        ingester = get_adapter(str(input_file), min_record_id=config.min_patient_record_id)
        store = RecordStore.load(str(input_file), ingester=ingester)
    except CleaningError as e:
        _print_error(e)
        raise typer.Exit(code=1)

    store.sort_by_id()
    store.remove_test_records(config.min_patient_record_id)
    validator = RangeValidator(config.pressure_bounds(), config.bmi_bound())

    mask = validator.validate(store.frame)
    ranges = mask.invalid_indices("ranges")
    ordering = mask.invalid_indices("ordering")

    # BMI is checked on a repaired copy; the snapshot itself is not modified
    repaired = RecordStore(store.frame.copy(), store.field_order)
    AnthropometricRepair().repair(repaired)
    bmi_valid = validator.check_bmi(repaired.frame)
    bmi = [int(i) for i in repaired.frame.index[~bmi_valid.to_numpy(dtype=bool)]]

    table = Table(show_header=True, header_style="bold")
    table.add_column("Check", style="cyan")
    table.add_column("Records", justify="right")
    table.add_column("Record IDs")
    for name, indices in (("Pressure range", ranges), ("Pressure ordering", ordering), ("BMI", bmi)):
        record_ids = store.frame.loc[indices, "id"].tolist() if indices else []
        shown = ", ".join(str(i) for i in record_ids[:15]) + (" ..." if len(record_ids) > 15 else "")
        table.add_row(name, str(len(indices)), shown)

    console.print(f"\n[bold]{len(store)} records checked[/bold]")
    console.print(table)

    if ranges or bmi:
        console.print("\n[yellow]⚠[/yellow] Records need adjudication")
        raise typer.Exit(code=1)
    if ordering:
        console.print("\n[yellow]⚠[/yellow] Pressure ordering violations would abort the cleaning run")
        raise typer.Exit(code=1)
    console.print("\n[green]✓[/green] No record needs adjudication")


@app.command()
def info() -> None:
    """Display configuration."""
    config = settings.cleaning_config
    console.print("[bold blue]Configuration[/bold blue]\n")

    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_row("Application:", settings.app_name)
    info_table.add_row("Version:", __version__)
    for label, bound in (
        ("Systolic bounds:", config.pressure.systolic),
        ("Diastolic bounds:", config.pressure.diastolic),
        ("Mean pressure bounds:", config.pressure.mean),
        ("BMI bounds:", config.bmi),
    ):
        info_table.add_row(label, f"[{bound.lower:g}, {bound.upper:g}]")
    info_table.add_row("Test records:", f"ID < {config.min_patient_record_id}")
    info_table.add_row("Patient tokens:", f"{config.token_prefix}{'0' * (config.token_width - 1)}1")
    info_table.add_row("Strict vocabulary:", "Enabled" if config.strict_vocabulary else "Disabled")
    info_table.add_row("Log level:", settings.log_level)
    info_table.add_row("Report directory:", settings.report_dir)

    console.print(info_table)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"Pressure-Sieve v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", help="Show version information",
        callback=_version_callback, is_eager=True
    )
) -> None:
    """Pressure-Sieve: blood-pressure dataset cleaning pipeline."""


if __name__ == "__main__":
    app()
