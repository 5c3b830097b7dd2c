"""Categorical Translator - Czech to English harmonization.

Each categorical field is translated through an explicit, finite, bidirectional
vocabulary. Lookup is by exact source string; a missing input stays missing.

A present value that is not in the source vocabulary means the vocabulary no
longer matches the platform export. Strict mode (PS_STRICT_VOCABULARY) treats
that as fatal and aborts the run. The default keeps the run going: the value
becomes missing, is logged as a warning and is counted in the run summary so
the vocabulary can be extended.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Type

import pandas as pd

from pressure_sieve.domain.enums import (
    CuffType,
    Gender,
    HypertensionClass,
    MeasurementMethod,
    RhythmDisorder,
)
from pressure_sieve.domain.golden_record import CUFF_TYPE
from pressure_sieve.domain.ports import VocabularyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Vocabulary:
    """Finite bijection between source and target category labels.

    Parameters:
        name: Vocabulary name used in diagnostics
        source: Source labels (Czech)
        target: Target labels (English), aligned with ``source``
        target_enum: Optional enum the target side must cover exactly

    Raises:
        VocabularyError: If the two sides differ in length, contain duplicates,
            or do not match ``target_enum``
    """
    name: str
    source: tuple[str, ...]
    target: tuple[str, ...]
    target_enum: Optional[Type[Enum]] = None

    def __post_init__(self):
        object.__setattr__(self, "source", tuple(self.source))
        object.__setattr__(self, "target", tuple(self.target))
        if len(self.source) != len(self.target):
            raise VocabularyError(
                f"Vocabulary '{self.name}' has {len(self.source)} source and "
                f"{len(self.target)} target labels",
                vocabulary=self.name
            )
        for side, labels in (("source", self.source), ("target", self.target)):
            if len(set(labels)) != len(labels):
                raise VocabularyError(
                    f"Vocabulary '{self.name}' has duplicate {side} labels",
                    vocabulary=self.name
                )
        if self.target_enum is not None:
            expected = {member.value for member in self.target_enum}
            if set(self.target) != expected:
                raise VocabularyError(
                    f"Vocabulary '{self.name}' targets {sorted(self.target)}, "
                    f"expected {sorted(expected)}",
                    vocabulary=self.name
                )

    @property
    def forward(self) -> dict[str, str]:
        return dict(zip(self.source, self.target))


GENDER_VOCABULARY = Vocabulary(
    "gender",
    source=("Muž", "Žena", "Jiné"),
    target=tuple(m.value for m in Gender),
    target_enum=Gender,
)

RHYTHM_VOCABULARY = Vocabulary(
    "rhythm",
    source=("Sinusový rytmus", "FISI/FLUSI", "Četné SVES", "Četné KES"),
    target=tuple(m.value for m in RhythmDisorder),
    target_enum=RhythmDisorder,
)

HYPERTENSION_VOCABULARY = Vocabulary(
    "hypertension",
    source=(
        "Optimální",
        "Normální",
        "Vysoký normální",
        "Hypertenze stupeň 1",
        "Hypertenze stupeň 2",
        "Hypertenze stupeň 3",
    ),
    target=tuple(m.value for m in HypertensionClass),
    target_enum=HypertensionClass,
)

METHOD_VOCABULARY = Vocabulary(
    "method",
    source=("Metoda 1", "Metoda 2", "Metoda 3"),
    target=tuple(m.value for m in MeasurementMethod),
    target_enum=MeasurementMethod,
)

CUFF_VOCABULARY = Vocabulary(
    "cuff",
    source=("Klasická", "Větší"),
    target=tuple(m.value for m in CuffType),
    target_enum=CuffType,
)

# Field (wire name) -> vocabulary
DEFAULT_VOCABULARIES: dict[str, Vocabulary] = {
    "gender": GENDER_VOCABULARY,
    "rhytmDisorders": RHYTHM_VOCABULARY,
    "hypertensionClass": HYPERTENSION_VOCABULARY,
    "sysPressureClassification": HYPERTENSION_VOCABULARY,
    "diasPressureClassification": HYPERTENSION_VOCABULARY,
    "method": METHOD_VOCABULARY,
    CUFF_TYPE: CUFF_VOCABULARY,
}


class CategoricalTranslator:
    """Translate categorical columns through their vocabularies.

    Parameters:
        vocabularies: Field -> Vocabulary (defaults to DEFAULT_VOCABULARIES)
        strict: Treat a present value outside the vocabulary as fatal

    Example Usage:
        ```python
        translator = CategoricalTranslator(strict=settings.strict_vocabulary)
        misses = translator.translate(store.frame)
        ```
    """

    def __init__(self, vocabularies: Optional[Mapping[str, Vocabulary]] = None, strict: bool = False):
        self.vocabularies = dict(vocabularies if vocabularies is not None else DEFAULT_VOCABULARIES)
        self.strict = strict

    def translate_values(self, values: pd.Series, vocabulary: Vocabulary) -> pd.Series:
        """Translate a sequence of labels, preserving order and length.

        Raises:
            VocabularyError: In strict mode, if a present value is not in the vocabulary
        """
        present = values.notna()
        translated = values.map(vocabulary.forward)
        misses = present & translated.isna()
        if misses.any():
            unknown = sorted({str(v) for v in values[misses]})
            message = (
                f"{int(misses.sum())} values not in vocabulary '{vocabulary.name}': {unknown}"
            )
            if self.strict:
                raise VocabularyError(message, vocabulary=vocabulary.name)
            logger.warning(f"{message}; treated as missing")
        return translated.astype(object).where(translated.notna(), None)

    def translate(self, frame: pd.DataFrame) -> dict[str, int]:
        """Translate every configured column of ``frame`` in place.

        Returns:
            dict[str, int]: Field -> number of present values that were not in the vocabulary
        """
        misses: dict[str, int] = {}
        for column, vocabulary in self.vocabularies.items():
            if column not in frame.columns:
                logger.warning(f"Field '{column}' not present; skipping translation")
                continue
            values = frame[column]
            translated = self.translate_values(values, vocabulary)
            misses[column] = int((values.notna() & translated.isna()).sum())
            frame[column] = translated
        logger.info(f"Translated {len(misses)} categorical fields")
        return misses
