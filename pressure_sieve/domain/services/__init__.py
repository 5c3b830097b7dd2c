"""Domain Services.

This package contains the cleaning steps that implement business logic
without infrastructure dependencies. Each service operates on the record
frame (or the RecordStore wrapping it) and is independent of how records
are loaded or exported.
"""

from pressure_sieve.domain.services.age_deriver import AgeDeriver, correct_misparsed_birth_year
from pressure_sieve.domain.services.anonymizer import IdentifierAnonymizer
from pressure_sieve.domain.services.anthropometrics import AnthropometricRepair
from pressure_sieve.domain.services.completeness import CompletenessFlagger
from pressure_sieve.domain.services.correction_applier import (
    CorrectionApplier,
    CorrectionOutcome,
    compute_bmi,
)
from pressure_sieve.domain.services.range_validator import Bound, RangeValidator, ValidationMask
from pressure_sieve.domain.services.translator import CategoricalTranslator, Vocabulary

__all__ = [
    'AgeDeriver',
    'AnthropometricRepair',
    'Bound',
    'CategoricalTranslator',
    'CompletenessFlagger',
    'CorrectionApplier',
    'CorrectionOutcome',
    'IdentifierAnonymizer',
    'RangeValidator',
    'ValidationMask',
    'Vocabulary',
    'compute_bmi',
    'correct_misparsed_birth_year',
]
