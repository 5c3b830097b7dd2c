"""Unit tests for the adjudication queue and directive vocabulary."""

import pytest

from pressure_sieve.domain.adjudication import AdjudicationQueue, Directive, parse_code
from pressure_sieve.domain.enums import DirectiveCode, RuleGroup
from pressure_sieve.domain.ports import AdjudicationIncompleteError, DirectiveRejectedError


@pytest.fixture
def pressure_queue():
    queue = AdjudicationQueue(RuleGroup.PRESSURE)
    queue.enqueue(4, {"id": 205, "sysPressureA": 1300.0})
    queue.enqueue(1, {"id": 102, "diasPressureO": None})
    return queue


class TestParseCode:

    def test_accepts_codes(self):
        assert parse_code("0") is DirectiveCode.DELETE
        assert parse_code(2) is DirectiveCode.CORRECT

    @pytest.mark.parametrize("response", ["1", "x", "", "02", True, 3])
    def test_rejects_everything_else(self, response):
        with pytest.raises(DirectiveRejectedError):
            parse_code(response)


class TestDirective:

    def test_target_field_maps_to_wire_name(self):
        directive = Directive(
            record_index=0, record_id=101, rule_group=RuleGroup.PRESSURE,
            code=DirectiveCode.CORRECT, field="mapO", value=95
        )

        assert directive.target_field == "meanPressureO"
        assert directive.is_correct

    def test_anthropometric_fields(self):
        directive = Directive(
            record_index=0, record_id=101, rule_group=RuleGroup.ANTHROPOMETRIC,
            code=DirectiveCode.CORRECT, field="height", value=175
        )

        assert directive.target_field == "height"


class TestAdjudicationQueue:

    def test_pending_in_record_order(self, pressure_queue):
        pending = pressure_queue.pending

        assert [d.record_index for d in pending] == [1, 4]
        assert pending[0].record_id == 102
        assert pending[0].allowed_fields == ("sysA", "diaA", "sysO", "diaO", "mapO")

    def test_resolve_delete(self, pressure_queue):
        directive = pressure_queue.resolve(1, "0")

        assert directive.is_delete
        assert directive.record_id == 102
        assert [d.record_index for d in pressure_queue.pending] == [4]

    def test_resolve_correct(self, pressure_queue):
        directive = pressure_queue.resolve(4, 2, field="sysA", value=130)

        assert directive.value == 130.0
        assert pressure_queue.directives == {4: directive}

    def test_unrecognized_code_rejected(self, pressure_queue):
        with pytest.raises(DirectiveRejectedError):
            pressure_queue.resolve(4, "1")

        assert len(pressure_queue.pending) == 2

    def test_field_from_other_group_rejected(self, pressure_queue):
        with pytest.raises(DirectiveRejectedError):
            pressure_queue.resolve(4, 2, field="weight", value=80)

    def test_field_is_case_sensitive(self, pressure_queue):
        with pytest.raises(DirectiveRejectedError):
            pressure_queue.resolve(4, 2, field="SYSA", value=130)

    def test_correct_requires_value(self, pressure_queue):
        with pytest.raises(DirectiveRejectedError):
            pressure_queue.resolve(4, 2, field="sysA")

    def test_non_finite_value_rejected(self, pressure_queue):
        with pytest.raises(DirectiveRejectedError):
            pressure_queue.resolve(4, 2, field="sysA", value=float("inf"))

    def test_delete_takes_no_field(self, pressure_queue):
        with pytest.raises(DirectiveRejectedError):
            pressure_queue.resolve(4, 0, field="sysA")

    def test_unflagged_record_rejected(self, pressure_queue):
        with pytest.raises(DirectiveRejectedError) as exc_info:
            pressure_queue.resolve(2, 0)

        assert exc_info.value.record_index == 2

    def test_single_directive_per_record(self, pressure_queue):
        pressure_queue.resolve(4, 0)

        with pytest.raises(DirectiveRejectedError):
            pressure_queue.resolve(4, 2, field="sysA", value=130)

    def test_require_complete_lists_pending_records(self, pressure_queue):
        pressure_queue.resolve(1, 0)

        with pytest.raises(AdjudicationIncompleteError) as exc_info:
            pressure_queue.require_complete()

        assert exc_info.value.record_ids == [205]

    def test_require_complete_passes_when_resolved(self, pressure_queue):
        pressure_queue.resolve(1, 0)
        pressure_queue.resolve(4, 0)

        pressure_queue.require_complete()
        assert pressure_queue.is_complete()

    def test_empty_queue_is_complete(self):
        queue = AdjudicationQueue(RuleGroup.ANTHROPOMETRIC)

        queue.require_complete()
        assert len(queue) == 0
