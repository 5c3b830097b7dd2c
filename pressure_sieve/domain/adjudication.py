"""Adjudication queue for flagged records.

Records that fail a validation rule group cannot be fixed automatically; an
operator decides, per record, whether to delete it or to correct one field.
The queue holds those pending decisions and the resulting directives, and is
independent of how the operator is reached (terminal prompt, replay file, ...).

Directive vocabulary (case-sensitive):
    0 - incorrect record -> delete
    2 - incorrect value that can be estimated -> correct one field

Correctable fields per rule group:
    pressure       - sysA, diaA, sysO, diaO, mapO
    anthropometric - weight, height
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, model_validator

from pressure_sieve.domain.enums import DirectiveCode, RuleGroup
from pressure_sieve.domain.golden_record import (
    DIA_A,
    DIA_O,
    HEIGHT,
    MAP_O,
    RECORD_ID_FIELD,
    SYS_A,
    SYS_O,
    WEIGHT,
)
from pressure_sieve.domain.ports import AdjudicationIncompleteError, DirectiveRejectedError

logger = logging.getLogger(__name__)

ERROR_FIELDS: dict[RuleGroup, dict[str, str]] = {
    RuleGroup.PRESSURE: {
        "sysA": SYS_A,
        "diaA": DIA_A,
        "sysO": SYS_O,
        "diaO": DIA_O,
        "mapO": MAP_O,
    },
    RuleGroup.ANTHROPOMETRIC: {
        "weight": WEIGHT,
        "height": HEIGHT,
    },
}


class Directive(BaseModel):
    """An operator's decision for one flagged record.

    Parameters:
        record_index: Position of the record in the store when it was flagged
        record_id: Record ID (stable key used when directives are saved/replayed)
        rule_group: Rule group that flagged the record
        code: DELETE or CORRECT
        field: Short field code (e.g. ``sysA``), required for CORRECT
        value: Corrected value, required for CORRECT
    """

    record_index: int
    record_id: int
    rule_group: RuleGroup
    code: DirectiveCode
    field: Optional[str] = None
    value: Optional[float] = Field(None, allow_inf_nan=False)

    @model_validator(mode="after")
    def check_vocabulary(self) -> 'Directive':
        allowed = ERROR_FIELDS[self.rule_group]
        if self.code is DirectiveCode.CORRECT:
            if self.field not in allowed:
                raise ValueError(
                    f"field must be one of {', '.join(allowed)} for {self.rule_group.value} errors, "
                    f"got {self.field!r}"
                )
            if self.value is None:
                raise ValueError("a corrected value is required")
        elif self.field is not None or self.value is not None:
            raise ValueError("a delete directive takes no field or value")
        return self

    @property
    def target_field(self) -> Optional[str]:
        """Wire name of the field to correct."""
        if self.field is None:
            return None
        return ERROR_FIELDS[self.rule_group][self.field]

    @property
    def is_delete(self) -> bool:
        return self.code is DirectiveCode.DELETE

    @property
    def is_correct(self) -> bool:
        return self.code is DirectiveCode.CORRECT

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class PendingDecision:
    """A flagged record awaiting a directive."""
    record_index: int
    record_id: int
    rule_group: RuleGroup
    record: dict

    @property
    def allowed_fields(self) -> tuple[str, ...]:
        return tuple(ERROR_FIELDS[self.rule_group])


def parse_code(code: Union[int, str, DirectiveCode]) -> DirectiveCode:
    """Map an operator response to a DirectiveCode.

    Raises:
        DirectiveRejectedError: If the response is not an accepted code
    """
    if isinstance(code, DirectiveCode):
        return code
    accepted = {str(member.value): member for member in DirectiveCode}
    key = code if isinstance(code, str) else str(code)
    if isinstance(code, bool) or key not in accepted:
        raise DirectiveRejectedError(
            f"Unrecognized directive {code!r}; expected one of {', '.join(accepted)}"
        )
    return accepted[key]


class AdjudicationQueue:
    """Pending decisions and collected directives for one rule group.

    Example Usage:
        ```python
        queue = AdjudicationQueue(RuleGroup.PRESSURE)
        queue.enqueue(3, store.get(3))
        queue.resolve(3, 2, field="sysA", value=128)
        queue.require_complete()
        directives = queue.directives  # {3: Directive(...)}
        ```
    """

    def __init__(self, rule_group: RuleGroup):
        self.rule_group = RuleGroup(rule_group)
        self._flagged: dict[int, PendingDecision] = {}
        self._directives: dict[int, Directive] = {}

    def __len__(self) -> int:
        return len(self._flagged)

    def enqueue(self, record_index: int, record: dict) -> PendingDecision:
        """Flag a record for adjudication."""
        decision = PendingDecision(
            record_index=int(record_index),
            record_id=int(record[RECORD_ID_FIELD]),
            rule_group=self.rule_group,
            record=dict(record),
        )
        self._flagged[decision.record_index] = decision
        return decision

    @property
    def flagged(self) -> list[PendingDecision]:
        return [self._flagged[index] for index in sorted(self._flagged)]

    @property
    def pending(self) -> list[PendingDecision]:
        """Flagged records still without a directive, in record order."""
        return [d for d in self.flagged if d.record_index not in self._directives]

    @property
    def directives(self) -> dict[int, Directive]:
        """Record index -> Directive."""
        return dict(self._directives)

    def resolve(
        self,
        record_index: int,
        code: Union[int, str, DirectiveCode],
        field: Optional[str] = None,
        value: Optional[float] = None
    ) -> Directive:
        """Record the operator's directive for a flagged record.

        Raises:
            DirectiveRejectedError: If the record is not pending or the directive is
                outside the accepted vocabulary
        """
        decision = self._flagged.get(record_index)
        if decision is None:
            raise DirectiveRejectedError(
                f"Record index {record_index} is not flagged for {self.rule_group.value} adjudication",
                record_index=record_index
            )
        if record_index in self._directives:
            raise DirectiveRejectedError(
                f"Record {decision.record_id} already has a directive",
                record_index=record_index
            )

        directive_code = parse_code(code)
        try:
            directive = Directive(
                record_index=record_index,
                record_id=decision.record_id,
                rule_group=self.rule_group,
                code=directive_code,
                field=field,
                value=value,
            )
        except PydanticValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            raise DirectiveRejectedError(
                f"Rejected directive for record {decision.record_id}: {messages}",
                record_index=record_index
            ) from e

        self._directives[record_index] = directive
        logger.debug(
            f"Record {decision.record_id}: directive {directive_code.name}"
            + (f" {field}={value}" if directive.is_correct else "")
        )
        return directive

    def is_complete(self) -> bool:
        return not self.pending

    def require_complete(self) -> None:
        """Raise if any flagged record is still without a directive.

        Raises:
            AdjudicationIncompleteError: listing the pending record IDs
        """
        pending = self.pending
        if pending:
            record_ids = [d.record_id for d in pending]
            raise AdjudicationIncompleteError(
                f"{len(pending)} flagged records have no directive (record IDs: {record_ids})",
                record_ids=record_ids
            )
