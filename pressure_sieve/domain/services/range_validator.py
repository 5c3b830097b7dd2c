"""Physiological range validation.

Pure, vectorized checks over the record frame. Each rule group produces a
boolean Series aligned with the frame index (True = valid); nothing is
mutated, so the validator can be run before and after correction.

Rule groups:
    ranges   - every pressure value present and inside its closed bounds
    ordering - SYS > DIA for both methods and MAP > DIA for the oscillometric method
    bmi      - BMI inside its bounds whenever height and weight are both present
"""

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

import pandas as pd

from pressure_sieve.domain.golden_record import (
    BMI,
    DIA_A,
    DIA_O,
    HEIGHT,
    MAP_O,
    RECORD_ID_FIELD,
    SYS_A,
    SYS_O,
    WEIGHT,
)
from pressure_sieve.domain.ports import DataIntegrityError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Bound:
    """Closed interval [lower, upper]."""
    lower: float
    upper: float

    def __post_init__(self):
        if self.lower >= self.upper:
            raise ValueError(f"Lower bound {self.lower} must be below upper bound {self.upper}")

    def contains(self, values: pd.Series) -> pd.Series:
        return values.notna() & (values >= self.lower) & (values <= self.upper)


SBP_BOUND = Bound(50, 250)
DBP_BOUND = Bound(30, 150)
MAP_BOUND = Bound(40, 160)

PRESSURE_BOUNDS: dict[str, Bound] = {
    SYS_A: SBP_BOUND,
    DIA_A: DBP_BOUND,
    SYS_O: SBP_BOUND,
    DIA_O: DBP_BOUND,
    MAP_O: MAP_BOUND,
}

BMI_BOUND = Bound(15, 60)

# (greater, lesser) pairs that must hold strictly
ORDERING_RULES = (
    (SYS_A, DIA_A),
    (SYS_O, DIA_O),
    (MAP_O, DIA_O),
)


@dataclass
class ValidationMask:
    """Per-record validity for each rule group.

    Attributes:
        ranges: Range + completeness validity (rule group a)
        ordering: SYS/DIA/MAP ordering validity (rule group b)
    """
    ranges: pd.Series
    ordering: pd.Series
    groups: tuple = field(default=("ranges", "ordering"), init=False, repr=False)

    def _group(self, group: str) -> pd.Series:
        if group not in self.groups:
            raise ValueError(f"Unknown rule group: {group}. Expected one of {self.groups}")
        return getattr(self, group)

    def as_mapping(self, group: str = "ranges") -> dict[int, bool]:
        """Record index -> validity for one rule group."""
        return {int(index): bool(valid) for index, valid in self._group(group).items()}

    def invalid_indices(self, group: str = "ranges") -> list[int]:
        series = self._group(group)
        return [int(index) for index in series.index[~series.to_numpy(dtype=bool)]]

    @property
    def all_valid(self) -> bool:
        return bool(self.ranges.all() and self.ordering.all())


class RangeValidator:
    """Validator for physiological bounds and pressure ordering.

    Parameters:
        bounds: Pressure field -> Bound (defaults to PRESSURE_BOUNDS)
        bmi_bound: Bound for BMI (defaults to BMI_BOUND)
    """

    def __init__(
        self,
        bounds: Optional[Mapping[str, Bound]] = None,
        bmi_bound: Optional[Bound] = None
    ):
        self.bounds = dict(bounds or PRESSURE_BOUNDS)
        self.bmi_bound = bmi_bound or BMI_BOUND

    def check_ranges(self, frame: pd.DataFrame) -> pd.Series:
        valid = pd.Series(True, index=frame.index)
        for column, bound in self.bounds.items():
            valid &= bound.contains(frame[column])
        return valid

    def check_ordering(self, frame: pd.DataFrame) -> pd.Series:
        # Comparisons against NaN are False, so missing values fail ordering too
        valid = pd.Series(True, index=frame.index)
        for greater, lesser in ORDERING_RULES:
            valid &= frame[greater] > frame[lesser]
        return valid

    def check_bmi(self, frame: pd.DataFrame) -> pd.Series:
        measured = frame[HEIGHT].notna() & frame[WEIGHT].notna()
        return ~measured | self.bmi_bound.contains(frame[BMI])

    def validate(self, frame: pd.DataFrame) -> ValidationMask:
        """Evaluate both pressure rule groups.

        Returns:
            ValidationMask: Per-record validity for ranges and ordering
        """
        mask = ValidationMask(
            ranges=self.check_ranges(frame),
            ordering=self.check_ordering(frame),
        )
        logger.debug(
            f"Validated {len(frame)} records: "
            f"{int((~mask.ranges).sum())} out of range, "
            f"{int((~mask.ordering).sum())} with inconsistent ordering"
        )
        return mask

    def assert_consistent(self, frame: pd.DataFrame) -> None:
        """Post-correction re-check of ranges and ordering.

        Raises:
            DataIntegrityError: If any record still violates either rule group
        """
        mask = self.validate(frame)
        for group in mask.groups:
            invalid = mask.invalid_indices(group)
            if invalid:
                record_ids = frame.loc[invalid, RECORD_ID_FIELD].tolist()
                raise DataIntegrityError(
                    f"ERROR in BP data: {len(invalid)} records fail the {group} check "
                    f"after correction (record IDs: {record_ids})",
                    check=group,
                    record_ids=record_ids
                )
        logger.info("BP data are OK")

    def assert_bmi_consistent(self, frame: pd.DataFrame) -> None:
        """Post-correction re-check of the BMI rule group.

        Raises:
            DataIntegrityError: If any measured record has BMI outside its bounds
        """
        valid = self.check_bmi(frame)
        if not valid.all():
            record_ids = frame.loc[~valid, RECORD_ID_FIELD].tolist()
            raise DataIntegrityError(
                f"ERROR in anthropometric data: {len(record_ids)} records have BMI outside "
                f"[{self.bmi_bound.lower}, {self.bmi_bound.upper}] after correction "
                f"(record IDs: {record_ids})",
                check="bmi",
                record_ids=record_ids
            )
        logger.info("Anthropometric data are OK")
