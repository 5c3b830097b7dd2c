"""Terminal adjudication front end.

Shows each flagged record on a rich console and blocks on three line-based
prompts: the directive code, the erroneous field and the corrected value.
A response outside the accepted vocabulary is reported and asked again.
"""

import logging
from typing import IO, Optional

from rich.console import Console
from rich.prompt import FloatPrompt, Prompt
from rich.table import Table

from pressure_sieve.domain.adjudication import AdjudicationQueue, PendingDecision, parse_code
from pressure_sieve.domain.enums import DirectiveCode, RuleGroup
from pressure_sieve.domain.ports import AdjudicationPort, DirectiveRejectedError

logger = logging.getLogger(__name__)

GROUP_TITLES = {
    RuleGroup.PRESSURE: "Blood pressure outside physiological range",
    RuleGroup.ANTHROPOMETRIC: "BMI outside [15, 60]",
}


def render_record(decision: PendingDecision) -> Table:
    """Build a two-column table with every field of the flagged record."""
    table = Table(
        title=f"{GROUP_TITLES[decision.rule_group]} - record {decision.record_id}",
        show_header=True,
        header_style="bold"
    )
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for name, value in decision.record.items():
        table.add_row(name, "" if value is None else str(value))
    return table


class TerminalAdjudicator(AdjudicationPort):
    """Collect directives from an operator at the terminal.

    Parameters:
        console: Console to render on (defaults to a new rich Console)
        stream: Optional input stream (defaults to stdin)

    Example Usage:
        ```python
        adjudicator = TerminalAdjudicator()
        adjudicator.adjudicate(queue)
        ```
    """

    def __init__(self, console: Optional[Console] = None, stream: Optional[IO[str]] = None):
        self.console = console or Console()
        self.stream = stream

    def adjudicate(self, queue: AdjudicationQueue) -> None:
        pending = queue.pending
        if not pending:
            return
        self.console.print(
            f"\n[bold yellow]{len(pending)} records need a decision "
            f"({queue.rule_group.value} check)[/bold yellow]"
        )
        for position, decision in enumerate(pending, start=1):
            self.console.print(f"\n[dim]{position}/{len(pending)}[/dim]")
            self.console.print(render_record(decision))
            self._ask(queue, decision)

    def _ask(self, queue: AdjudicationQueue, decision: PendingDecision) -> None:
        fields = ", ".join(decision.allowed_fields)
        while True:
            response = Prompt.ask(
                "Directive ([bold]0[/bold] delete record, [bold]2[/bold] correct a value)",
                console=self.console,
                stream=self.stream,
            )
            try:
                code = parse_code(response)
                if code is DirectiveCode.DELETE:
                    queue.resolve(decision.record_index, code)
                    return
                field = Prompt.ask(
                    f"Erroneous field ({fields})",
                    console=self.console,
                    stream=self.stream,
                )
                value = FloatPrompt.ask(
                    "Corrected value",
                    console=self.console,
                    stream=self.stream,
                )
                queue.resolve(decision.record_index, code, field=field, value=value)
                return
            except DirectiveRejectedError as e:
                logger.debug(f"Re-prompting for record {decision.record_id}: {e}")
                self.console.print(f"[red]✗[/red] {e}")
