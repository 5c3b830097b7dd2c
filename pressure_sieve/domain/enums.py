"""Target vocabularies and closed code sets.

The English terms here are the target side of every categorical translation;
the Czech source terms live next to the vocabularies in
``pressure_sieve.domain.services.translator``.
"""

from enum import Enum


class Gender(str, Enum):
    MAN = "man"
    WOMAN = "woman"
    OTHER = "other"


class RhythmDisorder(str, Enum):
    SINUS_RHYTHM = "sinus rhythm"
    AF_AFL = "AF/AFL"
    FREQUENT_PACS = "frequent PACs"
    FREQUENT_PVCS = "frequent PVCs"


class HypertensionClass(str, Enum):
    """ESH/ESC office blood pressure categories."""
    OPTIMAL = "optimal"
    NORMAL = "normal"
    HIGH_NORMAL = "high normal"
    GRADE_1 = "hypertension grade 1"
    GRADE_2 = "hypertension grade 2"
    GRADE_3 = "hypertension grade 3"


class MeasurementMethod(str, Enum):
    METHOD_1 = "method 1"
    METHOD_2 = "method 2"
    METHOD_3 = "method 3"


class CuffType(str, Enum):
    STANDARD = "standard"
    BIGGER = "bigger"


class RuleGroup(str, Enum):
    """Validation rule groups that can send a record to adjudication."""
    PRESSURE = "pressure"
    ANTHROPOMETRIC = "anthropometric"


class DirectiveCode(int, Enum):
    """Operator responses to a flagged record."""
    DELETE = 0
    CORRECT = 2


class ChangeType(str, Enum):
    UPDATE = "UPDATE"
    DELETE = "DELETE"
