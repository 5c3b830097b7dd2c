"""Unit tests for the MeasurementRecord input schema."""

import pytest
from pydantic import ValidationError

from pressure_sieve.domain.golden_record import MeasurementRecord, parse_timestamp


class TestParseTimestamp:

    def test_zulu(self):
        parsed = parse_timestamp("2025-06-01T08:15:00.000Z")

        assert parsed.utcoffset().total_seconds() == 0
        assert parsed.hour == 8

    def test_offset(self):
        parsed = parse_timestamp("2025-06-01T08:15:00.000+02:00")

        assert parsed.utcoffset().total_seconds() == 7200

    def test_naive_rejected(self):
        with pytest.raises(ValueError):
            parse_timestamp("2025-06-01T08:15:00")

    def test_garbage_rejected(self):
        with pytest.raises(ValueError):
            parse_timestamp("01.06.2025")


class TestMeasurementRecord:

    def test_valid_record(self, raw_record):
        record = MeasurementRecord.model_validate(raw_record())

        assert record.record_id == 101
        assert record.sys_pressure_a == 130.0
        assert record.gender == "Muž"
        assert record.creation_date == "2025-06-01T08:15:00.000Z"

    def test_missing_id_rejected(self, raw_record):
        data = raw_record()
        del data["id"]

        with pytest.raises(ValidationError):
            MeasurementRecord.model_validate(data)

    def test_non_numeric_pressure_rejected(self, raw_record):
        with pytest.raises(ValidationError):
            MeasurementRecord.model_validate(raw_record(sysPressureA="high"))

    def test_blank_values_are_missing(self, raw_record):
        record = MeasurementRecord.model_validate(raw_record(weight="", gender="  "))

        assert record.weight is None
        assert record.gender is None

    def test_null_pressure_allowed(self, raw_record):
        record = MeasurementRecord.model_validate(raw_record(diasPressureO=None))

        assert record.dias_pressure_o is None

    def test_bad_timestamp_rejected(self, raw_record):
        with pytest.raises(ValidationError):
            MeasurementRecord.model_validate(raw_record(birthday="1954-06-01"))

    def test_blank_timestamp_is_missing(self, raw_record):
        record = MeasurementRecord.model_validate(raw_record(birthday="", creationDate="  "))

        assert record.birthday is None
        assert record.creation_date is None

    def test_unknown_fields_are_kept(self, raw_record):
        record = MeasurementRecord.model_validate(raw_record(deviceSerial="X-17"))

        dumped = record.model_dump(by_alias=True, exclude_unset=True)
        assert dumped["deviceSerial"] == "X-17"
        assert dumped["sysPressureA"] == 130.0
