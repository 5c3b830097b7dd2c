"""Completeness Flagger."""

import logging
from typing import Mapping

import pandas as pd

from pressure_sieve.domain.golden_record import ARM_SIZE, HEIGHT, WEIGHT

logger = logging.getLogger(__name__)

COMPLETENESS_FIELDS = (ARM_SIZE, HEIGHT, WEIGHT)


class CompletenessFlagger:
    """A record is incomplete iff armSize, height or weight is missing."""

    def __init__(self, fields: tuple = COMPLETENESS_FIELDS):
        self.fields = tuple(fields)

    def flag(self, record: Mapping) -> bool:
        return any(pd.isna(record.get(name)) for name in self.fields)

    def flag_frame(self, frame: pd.DataFrame) -> pd.Series:
        incomplete = frame[list(self.fields)].isna().any(axis=1).astype(bool)
        logger.info(f"{int(incomplete.sum())} of {len(frame)} records flagged incomplete")
        return incomplete
