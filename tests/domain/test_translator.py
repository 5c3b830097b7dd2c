"""Unit tests for the categorical translator."""

import logging

import pandas as pd
import pytest

from pressure_sieve.domain.enums import Gender
from pressure_sieve.domain.ports import VocabularyError
from pressure_sieve.domain.services.translator import (
    DEFAULT_VOCABULARIES,
    GENDER_VOCABULARY,
    HYPERTENSION_VOCABULARY,
    CategoricalTranslator,
    Vocabulary,
)


class TestVocabulary:

    def test_length_mismatch(self):
        with pytest.raises(VocabularyError):
            Vocabulary("broken", source=("a", "b"), target=("x",))

    def test_duplicate_source(self):
        with pytest.raises(VocabularyError):
            Vocabulary("broken", source=("a", "a"), target=("x", "y"))

    def test_duplicate_target(self):
        with pytest.raises(VocabularyError) as exc_info:
            Vocabulary("broken", source=("a", "b"), target=("x", "x"))

        assert exc_info.value.vocabulary == "broken"

    def test_target_must_cover_enum(self):
        with pytest.raises(VocabularyError):
            Vocabulary("gender", source=("Muž", "Žena"), target=("man", "woman"), target_enum=Gender)

    def test_forward_lookup(self):
        assert HYPERTENSION_VOCABULARY.forward["Vysoký normální"] == "high normal"
        assert "muž" not in GENDER_VOCABULARY.forward

    def test_default_fields(self):
        assert set(DEFAULT_VOCABULARIES) == {
            "gender", "rhytmDisorders", "hypertensionClass", "sysPressureClassification",
            "diasPressureClassification", "method", "cuffType",
        }


class TestCategoricalTranslator:

    def test_translation_is_total_and_order_preserving(self):
        values = pd.Series(["Žena", None, "Muž", "Jiné"])

        result = CategoricalTranslator().translate_values(values, GENDER_VOCABULARY)

        assert result.tolist() == ["woman", None, "man", "other"]
        assert len(result) == len(values)

    def test_unknown_value_becomes_missing(self, caplog):
        values = pd.Series(["Muž", "Mužský"])

        with caplog.at_level(logging.WARNING):
            result = CategoricalTranslator().translate_values(values, GENDER_VOCABULARY)

        assert result.tolist() == ["man", None]
        assert "not in vocabulary 'gender'" in caplog.text

    def test_unknown_value_is_fatal_in_strict_mode(self):
        with pytest.raises(VocabularyError):
            CategoricalTranslator(strict=True).translate_values(pd.Series(["Mužský"]), GENDER_VOCABULARY)

    def test_translate_frame(self):
        frame = pd.DataFrame({
            "gender": ["Muž", "Žena"],
            "rhytmDisorders": ["FISI/FLUSI", None],
            "hypertensionClass": ["Optimální", "Hypertenze stupeň 2"],
            "sysPressureClassification": ["Normální", "Neznámý"],
            "diasPressureClassification": [None, "Vysoký normální"],
            "method": ["Metoda 3", "Metoda 1"],
            "cuffType": ["Větší", "Klasická"],
        })

        misses = CategoricalTranslator().translate(frame)

        assert frame["rhytmDisorders"].tolist() == ["AF/AFL", None]
        assert frame["hypertensionClass"].tolist() == ["optimal", "hypertension grade 2"]
        assert frame["sysPressureClassification"].tolist() == ["normal", None]
        assert frame["diasPressureClassification"].tolist() == [None, "high normal"]
        assert frame["method"].tolist() == ["method 3", "method 1"]
        assert frame["cuffType"].tolist() == ["bigger", "standard"]
        assert misses["sysPressureClassification"] == 1
        assert misses["gender"] == 0

    def test_missing_column_is_skipped(self):
        frame = pd.DataFrame({"gender": ["Muž"]})

        misses = CategoricalTranslator().translate(frame)

        assert misses == {"gender": 0}
