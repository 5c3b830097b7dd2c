"""Correction Applier - executes adjudication directives against the store.

Corrections are applied first, in record order; deletions are collected and
removed in a single filter step afterwards, so the record indices the
directives were keyed by stay valid for the whole pass.

Security Impact:
    - Every overwrite and deletion is written to the change audit trail
    - A directive that does not match the store is rejected, never ignored
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Mapping

from pressure_sieve.domain.adjudication import Directive
from pressure_sieve.domain.enums import ChangeType
from pressure_sieve.domain.golden_record import BMI, HEIGHT, RECORD_ID_FIELD, WEIGHT
from pressure_sieve.domain.ports import DirectiveRejectedError
from pressure_sieve.domain.record_store import RecordStore

logger = logging.getLogger(__name__)


def compute_bmi(height_cm, weight_kg) -> float:
    """BMI = weight / (height/100)^2; NaN when either input is missing or zero."""
    if height_cm is None or weight_kg is None:
        return math.nan
    if math.isnan(height_cm) or math.isnan(weight_kg) or height_cm == 0 or weight_kg == 0:
        return math.nan
    return weight_kg / ((height_cm / 100) ** 2)


@dataclass
class CorrectionOutcome:
    """Counts from one apply() pass."""
    corrected: int = 0
    deleted: int = 0
    bmi_recomputed: int = 0
    deleted_record_ids: list[int] = field(default_factory=list)
    corrected_fields: dict[str, int] = field(default_factory=dict)


class CorrectionApplier:
    """Apply delete/correct directives to a RecordStore.

    Parameters:
        audit_logger: Optional ChangeAuditLogger receiving one event per change
    """

    def __init__(self, audit_logger=None):
        self.audit_logger = audit_logger

    def apply(self, store: RecordStore, directives: Mapping[int, Directive]) -> CorrectionOutcome:
        """Apply all directives, then remove deleted records in one step.

        Parameters:
            store: Store the directives were collected against
            directives: Record index -> Directive

        Returns:
            CorrectionOutcome: What was changed

        Raises:
            DirectiveRejectedError: If a directive references a record or field
                the store does not have
        """
        outcome = CorrectionOutcome()
        to_delete: list[int] = []

        for index in sorted(directives):
            directive = directives[index]
            self._check_target(store, index, directive)
            if directive.is_delete:
                to_delete.append(index)
                continue
            self._correct(store, index, directive, outcome)

        if to_delete:
            deleted_ids = [int(store.get_value(index, RECORD_ID_FIELD)) for index in to_delete]
            outcome.deleted = store.remove(to_delete)
            outcome.deleted_record_ids = deleted_ids
            for record_id, directive in zip(deleted_ids, (directives[i] for i in to_delete)):
                self._audit(
                    directive.rule_group.value, record_id, "*",
                    change_type=ChangeType.DELETE, changed_by="operator"
                )

        logger.info(
            f"Applied {len(directives)} directives: {outcome.corrected} corrected, "
            f"{outcome.deleted} deleted, {outcome.bmi_recomputed} BMI values recomputed"
        )
        return outcome

    def _check_target(self, store: RecordStore, index: int, directive: Directive) -> None:
        if index not in store.frame.index:
            raise DirectiveRejectedError(
                f"Directive for record {directive.record_id} targets index {index}, "
                f"which is not in the store",
                record_index=index
            )
        record_id = int(store.get_value(index, RECORD_ID_FIELD))
        if record_id != directive.record_id:
            raise DirectiveRejectedError(
                f"Directive for record {directive.record_id} does not match record "
                f"{record_id} at index {index}",
                record_index=index
            )
        if directive.is_correct and directive.target_field not in store.frame.columns:
            raise DirectiveRejectedError(
                f"Record {record_id} has no field {directive.target_field!r}",
                record_index=index
            )

    def _correct(
        self,
        store: RecordStore,
        index: int,
        directive: Directive,
        outcome: CorrectionOutcome
    ) -> None:
        target = directive.target_field
        stage = directive.rule_group.value
        old_value = store.get_value(index, target)
        store.set_value(index, target, float(directive.value))
        outcome.corrected += 1
        outcome.corrected_fields[target] = outcome.corrected_fields.get(target, 0) + 1
        self._audit(stage, directive.record_id, target, old_value, directive.value, changed_by="operator")

        if target in (HEIGHT, WEIGHT):
            old_bmi = store.get_value(index, BMI)
            new_bmi = compute_bmi(store.get_value(index, HEIGHT), store.get_value(index, WEIGHT))
            store.set_value(index, BMI, new_bmi)
            outcome.bmi_recomputed += 1
            self._audit(stage, directive.record_id, BMI, old_bmi, new_bmi)

    def _audit(
        self,
        stage: str,
        record_id: int,
        field_name: str,
        old_value=None,
        new_value=None,
        change_type: ChangeType = ChangeType.UPDATE,
        changed_by: str = "system"
    ) -> None:
        if self.audit_logger is None:
            return
        self.audit_logger.log_change(
            stage=stage,
            record_id=record_id,
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
            change_type=change_type,
            changed_by=changed_by,
        )
