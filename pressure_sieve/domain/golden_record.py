"""Golden Record Schema Definitions.

This module defines the canonical input schema for one patient-visit blood-pressure
measurement, together with the wire names of every field the pipeline touches.
Records are validated against this schema once, at load time; afterwards the
pipeline works on a DataFrame whose columns carry the same wire names.

Data Integrity Impact:
    - Numbers are coerced to float and may be null; nulls are resolved by adjudication
    - Timestamps must follow the export format of the collection platform
    - Unknown fields are allowed and carried through to the export untouched

Architecture:
    - Pure domain model with zero infrastructure dependencies
    - Type safety enforced at runtime via Pydantic V2
"""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Wire names (case-sensitive, as exported by the collection platform)
RECORD_ID_FIELD = "id"
PERSONAL_ID_FIELD = "personalId"
CREATION_DATE_FIELD = "creationDate"
BIRTHDAY_FIELD = "birthday"
AGE_FIELD = "age"
MEDICATIONS_FIELD = "medications"
INCOMPLETE_FIELD = "incomplete"

SYS_A = "sysPressureA"
DIA_A = "diasPressureA"
SYS_O = "sysPressureO"
DIA_O = "diasPressureO"
MAP_O = "meanPressureO"
PRESSURE_FIELDS = (SYS_A, DIA_A, SYS_O, DIA_O, MAP_O)

HEIGHT = "height"
WEIGHT = "weight"
ARM_SIZE = "armSize"
BMI = "bmi"
CUFF_TYPE = "cuffType"
ANTHROPOMETRIC_FIELDS = (HEIGHT, WEIGHT, ARM_SIZE, BMI)

NUMERIC_FIELDS = PRESSURE_FIELDS + ANTHROPOMETRIC_FIELDS

CATEGORICAL_FIELDS = (
    "gender",
    "rhytmDisorders",
    "hypertensionClass",
    "sysPressureClassification",
    "diasPressureClassification",
    "method",
    CUFF_TYPE,
)

TIMESTAMP_FIELDS = (CREATION_DATE_FIELD, BIRTHDAY_FIELD)

REQUIRED_COLUMNS = (
    (RECORD_ID_FIELD, PERSONAL_ID_FIELD)
    + NUMERIC_FIELDS
    + CATEGORICAL_FIELDS
    + TIMESTAMP_FIELDS
)

# e.g. 2025-06-01T08:15:00.000Z or 2025-06-01T08:15:00.000+02:00
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"


def parse_timestamp(value: str) -> datetime:
    """Parse a platform timestamp into an aware datetime.

    Raises:
        ValueError: If the value is not an ISO-8601 extended timestamp with offset
    """
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            raise ValueError(f"Timestamp has no UTC offset: {value!r}")
        return parsed


class MeasurementRecord(BaseModel):
    """Input schema for one measurement event.

    Parameters:
        record_id: Numeric record identifier (wire name ``id``), unique
        personal_id: Raw personal identifier (PII, anonymized before export)
        creation_date: Timestamp of the visit
        birthday: Timestamp of birth (PII, replaced by ``age`` on export)
        sys_pressure_a / dias_pressure_a: Auscultatory SYS/DIA in mmHg
        sys_pressure_o / dias_pressure_o / mean_pressure_o: Oscillometric SYS/DIA/MAP in mmHg
        height: Height in cm
        weight: Weight in kg
        arm_size: Arm circumference in cm
        bmi: Body mass index as recorded by the platform
        cuff_type / gender / rhythm_disorders / hypertension_class /
        sys_pressure_classification / dias_pressure_classification / method:
            Categorical values in the source (Czech) vocabulary
        medications: Free text, dropped on export
    """

    record_id: int = Field(..., alias=RECORD_ID_FIELD)
    personal_id: Optional[Union[int, str]] = Field(None, alias=PERSONAL_ID_FIELD)
    creation_date: Optional[str] = Field(None, alias=CREATION_DATE_FIELD)
    birthday: Optional[str] = Field(None, alias=BIRTHDAY_FIELD)

    sys_pressure_a: Optional[float] = Field(None, alias=SYS_A)
    dias_pressure_a: Optional[float] = Field(None, alias=DIA_A)
    sys_pressure_o: Optional[float] = Field(None, alias=SYS_O)
    dias_pressure_o: Optional[float] = Field(None, alias=DIA_O)
    mean_pressure_o: Optional[float] = Field(None, alias=MAP_O)

    height: Optional[float] = Field(None, alias=HEIGHT)
    weight: Optional[float] = Field(None, alias=WEIGHT)
    arm_size: Optional[float] = Field(None, alias=ARM_SIZE)
    bmi: Optional[float] = Field(None, alias=BMI)
    cuff_type: Optional[str] = Field(None, alias=CUFF_TYPE)

    gender: Optional[str] = None
    rhythm_disorders: Optional[str] = Field(None, alias="rhytmDisorders")
    hypertension_class: Optional[str] = Field(None, alias="hypertensionClass")
    sys_pressure_classification: Optional[str] = Field(None, alias="sysPressureClassification")
    dias_pressure_classification: Optional[str] = Field(None, alias="diasPressureClassification")
    method: Optional[str] = None

    medications: Optional[Any] = Field(None, alias=MEDICATIONS_FIELD)

    @field_validator(
        "sys_pressure_a", "dias_pressure_a", "sys_pressure_o", "dias_pressure_o",
        "mean_pressure_o", "height", "weight", "arm_size", "bmi",
        mode="before",
    )
    @classmethod
    def blank_number_is_missing(cls, v):
        """Treat empty strings in numeric fields as missing values."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator(
        "cuff_type", "gender", "rhythm_disorders", "hypertension_class",
        "sys_pressure_classification", "dias_pressure_classification", "method",
        mode="before",
    )
    @classmethod
    def blank_category_is_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("creation_date", "birthday")
    @classmethod
    def validate_timestamp(cls, v: Optional[str]) -> Optional[str]:
        """Validate the timestamp format but keep the original text.

        The original string is what gets exported for ``creationDate``, so only
        its parseability is checked here. A blank timestamp is missing.

        Raises:
            ValueError: If the timestamp cannot be parsed
        """
        if v is None or not v.strip():
            return None
        parse_timestamp(v)
        return v

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        str_strip_whitespace=True,
    )
