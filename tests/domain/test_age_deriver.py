"""Unit tests for AgeDeriver."""

from datetime import datetime, timezone

import pandas as pd
import pytest

from pressure_sieve.domain.ports import DataIntegrityError
from pressure_sieve.domain.services.age_deriver import AgeDeriver, correct_misparsed_birth_year


def frame(*pairs) -> pd.DataFrame:
    return pd.DataFrame({
        "id": [101 + i for i in range(len(pairs))],
        "creationDate": [creation for creation, _ in pairs],
        "birthday": [birth for _, birth in pairs],
    })


class TestCorrectMisparsedBirthYear:

    def test_2054_moves_to_1954(self):
        corrected = correct_misparsed_birth_year(pd.Timestamp("2054-06-01T00:00:00Z"))

        assert corrected == pd.Timestamp("1954-06-01T00:00:00Z")

    def test_other_years_unchanged(self):
        birth = pd.Timestamp("1960-02-29T00:00:00Z")

        assert correct_misparsed_birth_year(birth) == birth

    def test_missing_unchanged(self):
        assert correct_misparsed_birth_year(pd.NaT) is pd.NaT


class TestDeriveAge:

    def test_whole_years(self):
        creation = datetime(2025, 6, 1, tzinfo=timezone.utc)

        assert AgeDeriver.derive_age(creation, datetime(1954, 6, 1, tzinfo=timezone.utc)) == 71

    def test_misparsed_year_gives_same_age(self):
        creation = datetime(2025, 6, 1, tzinfo=timezone.utc)

        assert AgeDeriver.derive_age(creation, datetime(2054, 6, 1, tzinfo=timezone.utc)) == 71

    def test_floor_before_anniversary(self):
        creation = datetime(2025, 6, 1, tzinfo=timezone.utc)

        assert AgeDeriver.derive_age(creation, datetime(1954, 6, 2, tzinfo=timezone.utc)) == 70

    def test_naive_timestamps_rejected(self):
        with pytest.raises(ValueError):
            AgeDeriver.derive_age(datetime(2025, 6, 1), datetime(1954, 6, 1))


class TestDeriveFrame:

    def test_ages_and_corrections(self):
        data = frame(
            ("2025-06-01T08:15:00.000Z", "1954-06-01T00:00:00.000Z"),
            ("2025-06-01T08:15:00.000Z", "2054-06-01T00:00:00.000Z"),
            ("2025-06-01T08:15:00.000+02:00", "1990-01-15T00:00:00.000+01:00"),
        )

        ages, corrected = AgeDeriver().derive(data)

        assert str(ages.dtype) == "Int64"
        assert ages.tolist() == [71, 71, 35]
        assert corrected == [1]

    def test_missing_birthday_gives_missing_age(self):
        data = frame(
            ("2025-06-01T08:15:00.000Z", None),
            ("2025-06-01T08:15:00.000Z", "1954-06-01T00:00:00.000Z"),
        )

        ages, _ = AgeDeriver().derive(data)

        assert ages.isna().tolist() == [True, False]

    def test_birth_after_measurement_is_fatal(self):
        data = frame(("2025-06-01T08:15:00.000Z", "2030-01-01T00:00:00.000Z"))

        with pytest.raises(DataIntegrityError) as exc_info:
            AgeDeriver().derive(data)

        assert exc_info.value.record_ids == [101]
