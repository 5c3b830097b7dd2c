"""Shared fixtures: raw records in the platform's export format."""

import json
from pathlib import Path

import pytest

from pressure_sieve.domain.record_store import RecordStore
from pressure_sieve.infrastructure.config_manager import CleaningConfig

BASE_RECORD = {
    "id": 101,
    "personalId": 5551234,
    "creationDate": "2025-06-01T08:15:00.000Z",
    "birthday": "1954-06-01T00:00:00.000Z",
    "sysPressureA": 130,
    "diasPressureA": 85,
    "sysPressureO": 128,
    "diasPressureO": 82,
    "meanPressureO": 97,
    "height": 175,
    "weight": 80,
    "armSize": 30,
    "bmi": 26.12,
    "cuffType": "Klasická",
    "gender": "Muž",
    "rhytmDisorders": "Sinusový rytmus",
    "hypertensionClass": "Normální",
    "sysPressureClassification": "Normální",
    "diasPressureClassification": "Vysoký normální",
    "method": "Metoda 1",
    "medications": "Prestarium 5 mg",
}


def make_record(**overrides) -> dict:
    record = dict(BASE_RECORD)
    record.update(overrides)
    return record


@pytest.fixture
def raw_record():
    """Factory for a valid raw record with field overrides."""
    return make_record


@pytest.fixture
def write_snapshot(tmp_path):
    """Write a list of raw records to a JSON file and return its path."""

    def _write(records, name="bloodPressure.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(records, ensure_ascii=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def store_from(write_snapshot):
    """Load raw records into a RecordStore through the JSON ingester."""

    def _load(records) -> RecordStore:
        return RecordStore.load(str(write_snapshot(records)))

    return _load


@pytest.fixture
def config():
    return CleaningConfig()


SNAPSHOT_DIRECTIVES = [
    {"record_id": 102, "rule_group": "pressure", "code": 2, "field": "sysA", "value": 130},
    {"record_id": 103, "rule_group": "pressure", "code": 0},
    {"record_id": 105, "rule_group": "anthropometric", "code": 2, "field": "height", "value": 175},
]


@pytest.fixture
def snapshot(write_snapshot):
    """Snapshot out of ID order with one test record and three records to adjudicate.

    102: systolic pressure out of range, 103: missing diastolic pressure,
    104: weight not measured, 105: height in dm and birth year 2054,
    106: arm size not measured.
    """
    return write_snapshot([
        make_record(id=105, personalId=7, height=17.5, bmi=2612.2,
                    birthday="2054-03-10T00:00:00.000Z"),
        make_record(id=5, personalId=1),
        make_record(id=102, personalId=3, sysPressureA=1300),
        make_record(id=101, personalId=7),
        make_record(id=106, personalId=3, armSize=0),
        make_record(id=103, personalId=7, diasPressureO=None),
        make_record(id=104, personalId=9, weight=0),
    ])


@pytest.fixture
def directives_file(tmp_path):
    """Directives resolving every flagged record of ``snapshot``."""
    path = tmp_path / "directives.json"
    path.write_text(json.dumps({"directives": SNAPSHOT_DIRECTIVES}), encoding="utf-8")
    return path
