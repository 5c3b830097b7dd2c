"""Age Deriver - replace date of birth with age at measurement.

Age is the floor of the elapsed time between birth and measurement expressed
in average Gregorian years (365.2425 days). Both timestamps are normalized to
UTC before subtraction.

The platform mis-parses some birth numbers into the year 2054; those births
are moved back a century by ``correct_misparsed_birth_year`` before the age
is computed.
"""

import logging
import math
from datetime import datetime

import pandas as pd

from pressure_sieve.domain.golden_record import BIRTHDAY_FIELD, CREATION_DATE_FIELD, RECORD_ID_FIELD
from pressure_sieve.domain.ports import DataIntegrityError

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.2425
SECONDS_PER_YEAR = DAYS_PER_YEAR * 24 * 60 * 60

MISPARSED_BIRTH_YEAR = 2054
CORRECTED_BIRTH_YEAR = 1954


def correct_misparsed_birth_year(birth: pd.Timestamp) -> pd.Timestamp:
    """Move a birth date from 2054 to 1954; other dates are returned unchanged."""
    if pd.notna(birth) and birth.year == MISPARSED_BIRTH_YEAR:
        return birth.replace(year=CORRECTED_BIRTH_YEAR)
    return birth


def to_utc(values: pd.Series) -> pd.Series:
    return pd.to_datetime(values, utc=True, format="ISO8601")


class AgeDeriver:
    """Compute integer ages from creation date and birthday."""

    @staticmethod
    def derive_age(creation: datetime, birth: datetime) -> int:
        """Whole years between ``birth`` and ``creation``.

        Example:
            derive_age(2025-06-01, 1954-06-01) == 71
        """
        creation = pd.Timestamp(creation)
        birth = correct_misparsed_birth_year(pd.Timestamp(birth))
        if creation.tzinfo is None or birth.tzinfo is None:
            raise ValueError("Both timestamps must carry a UTC offset")
        elapsed = (creation.tz_convert("UTC") - birth.tz_convert("UTC")).total_seconds()
        return math.floor(elapsed / SECONDS_PER_YEAR)

    def derive(self, frame: pd.DataFrame) -> tuple[pd.Series, list[int]]:
        """Ages for every record.

        Parameters:
            frame: Records with ``creationDate`` and ``birthday`` columns

        Returns:
            tuple[pd.Series, list[int]]: Nullable Int64 ages aligned with the frame,
                and the record indices whose birth year was corrected

        Raises:
            DataIntegrityError: If any derived age is negative
        """
        creation = to_utc(frame[CREATION_DATE_FIELD])
        birth = to_utc(frame[BIRTHDAY_FIELD])

        misparsed = (birth.dt.year == MISPARSED_BIRTH_YEAR).fillna(False).astype(bool)
        corrected = [int(index) for index in frame.index[misparsed.to_numpy()]]
        if corrected:
            birth = birth.copy()
            birth.loc[misparsed] = birth.loc[misparsed].map(correct_misparsed_birth_year)
            logger.warning(
                f"Corrected birth year {MISPARSED_BIRTH_YEAR} -> {CORRECTED_BIRTH_YEAR} "
                f"for {len(corrected)} records"
            )

        elapsed = (creation - birth).dt.total_seconds()
        ages = (elapsed // SECONDS_PER_YEAR).astype("Int64")

        negative = (ages < 0).fillna(False).astype(bool)
        if negative.any():
            record_ids = frame.loc[negative.to_numpy(), RECORD_ID_FIELD].tolist()
            raise DataIntegrityError(
                f"Birthday after measurement date for {len(record_ids)} records "
                f"(record IDs: {record_ids})",
                check="age",
                record_ids=record_ids
            )

        missing = int(ages.isna().sum())
        if missing:
            logger.warning(f"Age could not be derived for {missing} records (missing timestamps)")
        return ages, corrected
