"""Replay adjudication front end.

Resolves flagged records from a directives file instead of asking an operator,
so a cleaning session can be reproduced exactly or run in batch.

File format:
    {
      "directives": [
        {"record_id": 1234, "rule_group": "pressure", "code": 2, "field": "sysA", "value": 120},
        {"record_id": 1301, "rule_group": "anthropometric", "code": 0}
      ]
    }

Directives are keyed by record ID and rule group, never by position, because
positions shift when earlier records are deleted.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from pressure_sieve.domain.adjudication import AdjudicationQueue, Directive
from pressure_sieve.domain.enums import RuleGroup
from pressure_sieve.domain.ports import (
    AdjudicationPort,
    ExportError,
    SourceNotFoundError,
    UnsupportedSourceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DirectiveKey = tuple[int, RuleGroup]


class DirectiveEntry(BaseModel):
    """One saved directive."""
    record_id: int
    rule_group: RuleGroup
    code: int
    field: Optional[str] = None
    value: Optional[float] = None


class DirectivesFile(BaseModel):
    directives: list[DirectiveEntry] = Field(default_factory=list)


def load_directives(path: Union[str, Path]) -> dict[DirectiveKey, DirectiveEntry]:
    """Read a directives file.

    Returns:
        dict: (record_id, rule_group) -> DirectiveEntry

    Raises:
        SourceNotFoundError: If the file does not exist or cannot be read
        UnsupportedSourceError: If the file is not valid JSON
        ValidationError: If entries are malformed or a record/rule group pair repeats
    """
    source = Path(path)
    if not source.exists():
        raise SourceNotFoundError(f"Directives file not found: {source}", source=str(source))
    try:
        with open(source, 'r', encoding='utf-8') as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise UnsupportedSourceError(
            f"Invalid JSON format in {source}: {str(e)}",
            source=str(source),
            adapter="replay"
        )
    except OSError as e:
        raise SourceNotFoundError(f"Cannot read directives file {source}: {str(e)}", source=str(source))

    try:
        parsed = DirectivesFile.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Malformed directives file {source}",
            source=str(source),
            details={
                '.'.join(str(part) for part in err['loc']): err['msg'] for err in e.errors()
            }
        ) from e

    entries: dict[DirectiveKey, DirectiveEntry] = {}
    for entry in parsed.directives:
        key = (entry.record_id, entry.rule_group)
        if key in entries:
            raise ValidationError(
                f"Duplicate directive for record {entry.record_id} ({entry.rule_group.value})",
                source=str(source)
            )
        entries[key] = entry
    logger.info(f"Loaded {len(entries)} directives from {source}")
    return entries


def save_directives(path: Union[str, Path], directives: Iterable[Directive]) -> Path:
    """Write directives in the replay file format.

    Raises:
        ExportError: If the file cannot be written
    """
    destination = Path(path)
    document = DirectivesFile(directives=[
        DirectiveEntry(
            record_id=d.record_id,
            rule_group=d.rule_group,
            code=d.code.value,
            field=d.field,
            value=d.value,
        )
        for d in directives
    ])
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with open(destination, 'w', encoding='utf-8') as f:
            f.write(document.model_dump_json(indent=2, exclude_none=True))
    except OSError as e:
        raise ExportError(
            f"Cannot write directives to {destination}: {str(e)}",
            destination=str(destination)
        ) from e
    logger.info(f"Saved {len(document.directives)} directives to {destination}")
    return destination


class ReplayAdjudicator(AdjudicationPort):
    """Resolve pending decisions from saved directives.

    Records without a saved directive are passed to ``fallback`` when one is
    given (e.g. a TerminalAdjudicator), otherwise they stay pending and the
    pipeline's completeness check fails.

    Parameters:
        directives: Mapping from load_directives, or a path to a directives file
        fallback: Optional front end for records the file does not cover

    Raises:
        DirectiveRejectedError: From ``adjudicate`` if a saved directive is invalid
    """

    def __init__(
        self,
        directives: Union[str, Path, dict[DirectiveKey, DirectiveEntry]],
        fallback: Optional[AdjudicationPort] = None
    ):
        if isinstance(directives, (str, Path)):
            directives = load_directives(directives)
        self.directives = dict(directives)
        self.fallback = fallback

    def adjudicate(self, queue: AdjudicationQueue) -> None:
        replayed = 0
        for decision in queue.pending:
            entry = self.directives.get((decision.record_id, queue.rule_group))
            if entry is None:
                continue
            queue.resolve(decision.record_index, entry.code, field=entry.field, value=entry.value)
            replayed += 1

        uncovered = len(queue.pending)
        logger.info(
            f"Replayed {replayed} {queue.rule_group.value} directives; {uncovered} records not covered"
        )
        if uncovered and self.fallback is not None:
            self.fallback.adjudicate(queue)
