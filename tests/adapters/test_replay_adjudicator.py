"""Unit tests for directive files and ReplayAdjudicator."""

import json
from unittest.mock import Mock

import pytest

from pressure_sieve.adapters.adjudicators.replay import (
    ReplayAdjudicator,
    load_directives,
    save_directives,
)
from pressure_sieve.domain.adjudication import AdjudicationQueue, Directive
from pressure_sieve.domain.enums import DirectiveCode, RuleGroup
from pressure_sieve.domain.ports import (
    DirectiveRejectedError,
    SourceNotFoundError,
    UnsupportedSourceError,
    ValidationError,
)


def write_directives(tmp_path, entries, name="directives.json"):
    path = tmp_path / name
    path.write_text(json.dumps({"directives": entries}), encoding="utf-8")
    return path


@pytest.fixture
def queue(raw_record):
    queue = AdjudicationQueue(RuleGroup.PRESSURE)
    queue.enqueue(3, raw_record(id=104, sysPressureA=1300))
    queue.enqueue(5, raw_record(id=106, diasPressureO=None))
    return queue


class TestDirectivesFile:

    def test_save_then_load(self, tmp_path):
        directives = [
            Directive(record_index=0, record_id=104, rule_group=RuleGroup.PRESSURE,
                      code=DirectiveCode.CORRECT, field="sysA", value=130),
            Directive(record_index=4, record_id=106, rule_group=RuleGroup.ANTHROPOMETRIC,
                      code=DirectiveCode.DELETE),
        ]

        path = save_directives(tmp_path / "out" / "directives.json", directives)
        entries = load_directives(path)

        assert set(entries) == {(104, RuleGroup.PRESSURE), (106, RuleGroup.ANTHROPOMETRIC)}
        assert entries[(104, RuleGroup.PRESSURE)].value == 130.0
        assert "field" not in json.loads(path.read_text())["directives"][1]

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceNotFoundError):
            load_directives(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")

        with pytest.raises(UnsupportedSourceError):
            load_directives(path)

    def test_malformed_entry(self, tmp_path):
        path = write_directives(tmp_path, [{"record_id": "abc", "rule_group": "pressure", "code": 0}])

        with pytest.raises(ValidationError):
            load_directives(path)

    def test_duplicate_entry(self, tmp_path):
        path = write_directives(tmp_path, [
            {"record_id": 104, "rule_group": "pressure", "code": 0},
            {"record_id": 104, "rule_group": "pressure", "code": 2, "field": "sysA", "value": 120},
        ])

        with pytest.raises(ValidationError):
            load_directives(path)

    def test_same_record_in_both_groups(self, tmp_path):
        path = write_directives(tmp_path, [
            {"record_id": 104, "rule_group": "pressure", "code": 0},
            {"record_id": 104, "rule_group": "anthropometric", "code": 0},
        ])

        assert len(load_directives(path)) == 2


class TestReplayAdjudicator:

    def test_replays_by_record_id(self, queue, tmp_path):
        path = write_directives(tmp_path, [
            {"record_id": 104, "rule_group": "pressure", "code": 2, "field": "sysA", "value": 130},
            {"record_id": 106, "rule_group": "pressure", "code": 0},
            {"record_id": 106, "rule_group": "anthropometric", "code": 2, "field": "height", "value": 170},
        ])

        ReplayAdjudicator(path).adjudicate(queue)

        assert queue.is_complete()
        assert queue.directives[3].value == 130.0
        assert queue.directives[5].is_delete

    def test_uncovered_records_stay_pending(self, queue, tmp_path):
        path = write_directives(tmp_path, [{"record_id": 104, "rule_group": "pressure", "code": 0}])

        ReplayAdjudicator(str(path)).adjudicate(queue)

        assert [d.record_id for d in queue.pending] == [106]

    def test_fallback_receives_uncovered_records(self, queue, tmp_path):
        path = write_directives(tmp_path, [{"record_id": 104, "rule_group": "pressure", "code": 0}])
        fallback = Mock()

        ReplayAdjudicator(path, fallback=fallback).adjudicate(queue)

        fallback.adjudicate.assert_called_once_with(queue)

    def test_fallback_not_called_when_covered(self, queue, tmp_path):
        path = write_directives(tmp_path, [
            {"record_id": 104, "rule_group": "pressure", "code": 0},
            {"record_id": 106, "rule_group": "pressure", "code": 0},
        ])
        fallback = Mock()

        ReplayAdjudicator(path, fallback=fallback).adjudicate(queue)

        fallback.adjudicate.assert_not_called()

    def test_invalid_saved_code(self, queue, tmp_path):
        path = write_directives(tmp_path, [{"record_id": 104, "rule_group": "pressure", "code": 1}])

        with pytest.raises(DirectiveRejectedError):
            ReplayAdjudicator(path).adjudicate(queue)

    def test_field_from_wrong_group(self, queue, tmp_path):
        path = write_directives(tmp_path, [
            {"record_id": 104, "rule_group": "pressure", "code": 2, "field": "weight", "value": 80},
        ])

        with pytest.raises(DirectiveRejectedError):
            ReplayAdjudicator(path).adjudicate(queue)
