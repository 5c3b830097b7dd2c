"""Cleaning pipeline for Pressure-Sieve.

This module wires the domain services into the fixed cleaning sequence and
exports the result:

    load -> sort by ID -> drop test records
      -> range check -> pressure adjudication -> apply -> re-check (fatal)
      -> anthropometric repair -> BMI check -> anthropometric adjudication -> apply -> re-check (fatal)
      -> translate categoricals, anonymize personalId, derive age
      -> birthday replaced by age, medications dropped, incomplete added -> export

Every stage runs on the single RecordStore of the run, in order. Any
CleaningError raised by a stage aborts the run before export.

Architecture:
    - Follows Hexagonal Architecture principles
    - The ingester is selected automatically from the source extension
    - The adjudication front end is injected (terminal, replay, ...)
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from pressure_sieve.adapters.adjudicators import save_directives
from pressure_sieve.adapters.exporters import JSONExporter
from pressure_sieve.adapters.ingesters import get_adapter
from pressure_sieve.domain.adjudication import AdjudicationQueue, Directive
from pressure_sieve.domain.cdc_models import CleaningSummary
from pressure_sieve.domain.enums import RuleGroup
from pressure_sieve.domain.golden_record import (
    AGE_FIELD,
    BIRTHDAY_FIELD,
    INCOMPLETE_FIELD,
    MEDICATIONS_FIELD,
    PERSONAL_ID_FIELD,
    RECORD_ID_FIELD,
)
from pressure_sieve.domain.ports import AdjudicationPort, CleaningError, ExportPort, IngestionPort
from pressure_sieve.domain.record_store import RecordStore
from pressure_sieve.domain.services import (
    AgeDeriver,
    AnthropometricRepair,
    CategoricalTranslator,
    CompletenessFlagger,
    CorrectionApplier,
    IdentifierAnonymizer,
    RangeValidator,
)
from pressure_sieve.infrastructure.audit import ChangeAuditLogger
from pressure_sieve.infrastructure.config_manager import CleaningConfig
from pressure_sieve.infrastructure.settings import settings

logger = logging.getLogger(__name__)


class CleaningPipeline:
    """Run the cleaning stages on one snapshot.

    Parameters:
        adjudicator: Front end that resolves flagged records
        config: Cleaning parameters (defaults to the environment configuration)
        audit_logger: Change audit trail (a new one is created if None)
        ingester: IngestionPort implementation (selected by extension if None)

    Example Usage:
        ```python
        pipeline = CleaningPipeline(adjudicator=TerminalAdjudicator())
        store, summary = pipeline.run("bloodPressure.json")
        JSONExporter().export(store, "bp_measurements_processed.json")
        ```
    """

    def __init__(
        self,
        adjudicator: AdjudicationPort,
        config: Optional[CleaningConfig] = None,
        audit_logger: Optional[ChangeAuditLogger] = None,
        ingester: Optional[IngestionPort] = None
    ):
        self.config = config or settings.cleaning_config
        self.adjudicator = adjudicator
        self.audit_logger = audit_logger or ChangeAuditLogger()
        self.ingester = ingester

        self.validator = RangeValidator(self.config.pressure_bounds(), self.config.bmi_bound())
        self.applier = CorrectionApplier(self.audit_logger)
        self.repair = AnthropometricRepair()
        self.translator = CategoricalTranslator(strict=self.config.strict_vocabulary)
        self.anonymizer = IdentifierAnonymizer(self.config.token_prefix, self.config.token_width)
        self.age_deriver = AgeDeriver()
        self.flagger = CompletenessFlagger()

        self.directives: list[Directive] = []

    def run(self, source: str) -> tuple[RecordStore, CleaningSummary]:
        """Clean ``source`` up to (not including) export.

        Returns:
            tuple[RecordStore, CleaningSummary]: Cleaned store and run statistics

        Raises:
            CleaningError: Any fatal condition of any stage
        """
        summary = CleaningSummary(run_id=self.audit_logger.run_id, source=str(source))
        self.directives = []
        logger.info(f"Starting cleaning run {summary.run_id} on {source}")

        ingester = self.ingester or get_adapter(source, min_record_id=self.config.min_patient_record_id)
        store = RecordStore.load(source, ingester=ingester)
        summary.records_loaded = len(store)
        store.sort_by_id()
        summary.test_records_removed = store.remove_test_records(self.config.min_patient_record_id)

        self.clean_pressure(store, summary)

        summary.anthropometric_repairs = self.repair.repair(store)
        self.clean_anthropometrics(store, summary)

        self.harmonize(store, summary)
        self.finalize(store, summary)

        summary.records_exported = len(store)
        summary.finished_at = datetime.now(timezone.utc)
        logger.info(f"Cleaning run {summary.run_id} finished with {len(store)} records")
        return store, summary

    def _adjudicate(self, store: RecordStore, rule_group: RuleGroup, invalid: list[int]):
        queue = AdjudicationQueue(rule_group)
        for index in invalid:
            queue.enqueue(index, store.get(index))
        if invalid:
            logger.info(f"{len(invalid)} records flagged for {rule_group.value} adjudication")
            self.adjudicator.adjudicate(queue)
        queue.require_complete()

        directives = queue.directives
        self.directives.extend(directives[index] for index in sorted(directives))
        return self.applier.apply(store, directives)

    def clean_pressure(self, store: RecordStore, summary: CleaningSummary) -> None:
        """Range check, adjudication, correction and fatal re-check of blood pressure."""
        mask = self.validator.validate(store.frame)
        invalid = mask.invalid_indices("ranges")
        summary.pressure_flagged = len(invalid)

        outcome = self._adjudicate(store, RuleGroup.PRESSURE, invalid)
        summary.pressure_corrected = outcome.corrected
        summary.pressure_deleted = outcome.deleted

        self.validator.assert_consistent(store.frame)

    def clean_anthropometrics(self, store: RecordStore, summary: CleaningSummary) -> None:
        """BMI check, adjudication, correction and fatal re-check."""
        valid = self.validator.check_bmi(store.frame)
        invalid = [int(index) for index in store.frame.index[~valid.to_numpy(dtype=bool)]]
        summary.bmi_flagged = len(invalid)

        outcome = self._adjudicate(store, RuleGroup.ANTHROPOMETRIC, invalid)
        summary.bmi_corrected = outcome.corrected
        summary.bmi_deleted = outcome.deleted

        self.validator.assert_bmi_consistent(store.frame)

    def harmonize(self, store: RecordStore, summary: CleaningSummary) -> None:
        """Translate categoricals, anonymize personal IDs and derive ages."""
        frame = store.frame
        summary.vocabulary_misses = self.translator.translate(frame)

        tokens = self.anonymizer.anonymize(frame[PERSONAL_ID_FIELD])
        store.assign_field(PERSONAL_ID_FIELD, tokens)
        summary.patients = len(self.anonymizer.mapping)

        ages, corrected = self.age_deriver.derive(store.frame)
        summary.birth_years_corrected = [
            int(store.get_value(index, RECORD_ID_FIELD)) for index in corrected
        ]
        store.replace_field(BIRTHDAY_FIELD, AGE_FIELD, ages)

    def finalize(self, store: RecordStore, summary: CleaningSummary) -> None:
        """Shape the store for export."""
        store.drop_field(MEDICATIONS_FIELD)
        incomplete = self.flagger.flag_frame(store.frame)
        store.add_field(INCOMPLETE_FIELD, incomplete)
        summary.incomplete_records = int(incomplete.sum())


def process_cleaning(
    source: str,
    output: Union[str, Path],
    adjudicator: AdjudicationPort,
    config: Optional[CleaningConfig] = None,
    audit_logger: Optional[ChangeAuditLogger] = None,
    exporter: Optional[ExportPort] = None,
    directives_path: Optional[Union[str, Path]] = None
) -> tuple[CleaningSummary, CleaningPipeline]:
    """Clean a snapshot and export it.

    Parameters:
        source: Raw snapshot path
        output: Destination of the cleaned snapshot
        adjudicator: Front end that resolves flagged records
        config: Cleaning parameters (defaults to the environment configuration)
        audit_logger: Change audit trail
        exporter: ExportPort implementation (JSONExporter if None)
        directives_path: Where to save the operator directives. They are saved
            even when a later stage fails, so the decisions can be replayed.

    Returns:
        tuple[CleaningSummary, CleaningPipeline]: Run statistics and the pipeline
            (for its directives and audit trail)

    Raises:
        CleaningError: Any fatal condition; the cleaned snapshot is not written in that case
    """
    pipeline = CleaningPipeline(adjudicator=adjudicator, config=config, audit_logger=audit_logger)
    try:
        store, summary = pipeline.run(source)
    except (CleaningError, EOFError, KeyboardInterrupt):
        if directives_path is not None and pipeline.directives:
            try:
                save_directives(directives_path, pipeline.directives)
            except CleaningError as e:
                logger.error(f"Directives entered before the failure were not saved: {e}")
        raise
    if directives_path is not None:
        save_directives(directives_path, pipeline.directives)

    path = (exporter or JSONExporter()).export(store, output)
    logger.info(f"Cleaned snapshot written to {path}")
    return summary, pipeline
