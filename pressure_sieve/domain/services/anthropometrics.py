"""Anthropometric repair.

The platform stores "not measured" as 0 for height, weight and arm size. These
sentinels are turned into missing values before the BMI check, and dependent
fields are kept consistent:

    height == 0 or weight == 0  ->  that field and bmi are missing
    armSize == 0                ->  armSize missing
    armSize missing             ->  cuffType missing
    height and weight present, bmi missing  ->  bmi recomputed
"""

import logging

import numpy as np

from pressure_sieve.domain.golden_record import ARM_SIZE, BMI, CUFF_TYPE, HEIGHT, WEIGHT
from pressure_sieve.domain.record_store import RecordStore

logger = logging.getLogger(__name__)


class AnthropometricRepair:
    """Replace zero sentinels and restore BMI / cuff consistency."""

    def repair(self, store: RecordStore) -> dict[str, int]:
        """Repair the store in place.

        Returns:
            dict[str, int]: Number of records touched per rule
        """
        frame = store.frame
        counts: dict[str, int] = {}

        for column in (HEIGHT, WEIGHT):
            zero = frame[column] == 0
            counts[f"{column}_zero"] = int(zero.sum())
            frame.loc[zero, [column, BMI]] = np.nan

        # bmi is meaningless once either input is gone
        unmeasured = frame[HEIGHT].isna() | frame[WEIGHT].isna()
        stale_bmi = unmeasured & frame[BMI].notna()
        counts["bmi_cleared"] = int(stale_bmi.sum())
        frame.loc[stale_bmi, BMI] = np.nan

        zero_arm = frame[ARM_SIZE] == 0
        counts["armSize_zero"] = int(zero_arm.sum())
        frame.loc[zero_arm, ARM_SIZE] = np.nan

        orphan_cuff = frame[ARM_SIZE].isna() & frame[CUFF_TYPE].notna()
        counts["cuffType_cleared"] = int(orphan_cuff.sum())
        frame.loc[orphan_cuff, CUFF_TYPE] = None

        recompute = frame[HEIGHT].notna() & frame[WEIGHT].notna() & frame[BMI].isna()
        counts["bmi_recomputed"] = int(recompute.sum())
        frame.loc[recompute, BMI] = (
            frame.loc[recompute, WEIGHT] / (frame.loc[recompute, HEIGHT] / 100) ** 2
        )

        logger.info(
            "Anthropometric repair: "
            + ", ".join(f"{name}={count}" for name, count in counts.items())
        )
        return counts
