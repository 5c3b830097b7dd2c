"""Identifier Anonymizer - replace raw personal IDs with sequential tokens."""

import logging
from typing import Optional

import pandas as pd

from pressure_sieve.domain.ports import AnonymizationOverflowError

logger = logging.getLogger(__name__)


def normalize_raw_id(value) -> Optional[str]:
    """Key under which a raw ID is grouped; 7, 7.0 and "7" are one patient."""
    if pd.isna(value):
        return None
    key = str(value).strip()
    return key[:-2] if key.endswith(".0") else key


class IdentifierAnonymizer:
    """Map raw personal IDs to ``pac_0001``-style tokens in first-seen order.

    Every record sharing a raw ID receives the same token; a missing raw ID
    stays missing. The mapping is available after ``anonymize`` for
    re-identification by authorized staff, but is never logged.

    Parameters:
        prefix: Token prefix (default ``pac_``)
        width: Zero-padded digit count (default 4, i.e. up to 9999 patients)

    Security Impact:
        - Raw IDs never appear in log output or exceptions
    """

    def __init__(self, prefix: str = "pac_", width: int = 4):
        if width < 1:
            raise ValueError(f"Token width must be positive, got {width}")
        self.prefix = prefix
        self.width = width
        self._mapping: Optional[dict] = None

    @property
    def capacity(self) -> int:
        return 10 ** self.width - 1

    @property
    def mapping(self) -> dict:
        """Raw ID -> token from the last ``anonymize`` call."""
        if self._mapping is None:
            raise RuntimeError("anonymize() has not been called")
        return dict(self._mapping)

    def token(self, ordinal: int) -> str:
        """Token for the ``ordinal``-th distinct patient (1-based)."""
        return f"{self.prefix}{ordinal:0{self.width}d}"

    def anonymize(self, raw_ids: pd.Series) -> pd.Series:
        """Replace raw IDs by tokens.

        Parameters:
            raw_ids: Raw personal IDs in record order

        Returns:
            pd.Series: Tokens aligned with ``raw_ids``

        Raises:
            AnonymizationOverflowError: If there are more distinct IDs than the width allows
        """
        keys = pd.Series([normalize_raw_id(v) for v in raw_ids], index=raw_ids.index, dtype=object)

        codes, uniques = pd.factorize(keys, use_na_sentinel=True)
        if len(uniques) > self.capacity:
            raise AnonymizationOverflowError(
                f"{len(uniques)} distinct patients exceed the {self.capacity} tokens "
                f"available with width {self.width}",
                distinct_count=len(uniques),
                capacity=self.capacity
            )

        tokens = [self.token(i + 1) for i in range(len(uniques))]
        self._mapping = dict(zip(uniques, tokens))
        result = pd.Series(
            [tokens[code] if code >= 0 else None for code in codes],
            index=raw_ids.index,
            dtype=object,
        )
        logger.info(f"Anonymized {len(raw_ids)} records belonging to {len(uniques)} patients")
        return result
