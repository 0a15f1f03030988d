"""Tests for the result algebra."""

import pytest

from knobshape.captures import Capture, CaptureSet, create_capture_key
from knobshape.exceptions import ResultInvariantError
from knobshape.result import (
    Failure,
    Invalid,
    ResultKind,
    Valid,
    failure,
    invalid,
    is_failure,
    is_invalid,
    is_valid,
    valid,
)


class TestConstructors:
    """Test result construction and kind invariants."""

    def test_valid_defaults(self):
        """Test a valid result carries one empty capture world."""
        result = valid(42)
        assert result.value == 42
        assert result.errors == ()
        assert result.warnings == ()
        assert len(result.captures) == 1
        assert len(result.captures[0]) == 0
        assert result.kind is ResultKind.VALID
        assert bool(result) is True

    def test_string_messages_are_wrapped(self):
        """Test single messages are normalised to tuples."""
        result = invalid("x", "bad value", "careful")
        assert result.errors == ("bad value",)
        assert result.warnings == ("careful",)
        assert result.kind is ResultKind.INVALID
        assert bool(result) is False

    def test_failure_has_no_value_or_captures(self):
        """Test a failure only carries diagnostics."""
        result = failure(["first", "second"], "note")
        assert result.errors == ("first", "second")
        assert result.warnings == ("note",)
        assert result.kind is ResultKind.FAILURE
        assert not hasattr(result, "value")
        assert not hasattr(result, "captures")
        assert bool(result) is False

    def test_invalid_requires_errors(self):
        """Test an Invalid without errors is rejected."""
        with pytest.raises(ResultInvariantError):
            invalid(1, [])

    def test_failure_requires_errors(self):
        """Test a Failure without errors is rejected."""
        with pytest.raises(ResultInvariantError):
            failure([])

    def test_direct_construction_normalizes(self):
        """Test dataclass construction accepts lists."""
        result = Invalid(1, ["e"], ["w"])
        assert result.errors == ("e",)
        assert result.warnings == ("w",)
        assert result == invalid(1, "e", "w")

    def test_results_are_immutable(self):
        """Test results cannot be modified after construction."""
        result = valid(1)
        with pytest.raises(AttributeError):
            result.value = 2

    def test_results_compare_by_content(self):
        assert valid(1, "w") == valid(1, "w")
        assert invalid(1, "e") != invalid(1, "other")

    def test_results_hold_no_traversal_state(self):
        """Test a result carries only its own fields."""
        assert not hasattr(valid(1), "producer")
        assert not hasattr(failure("e"), "producer")


class TestGuards:
    """Test the kind guards."""

    def test_guards(self):
        assert is_valid(valid(1))
        assert is_invalid(invalid(1, "e"))
        assert is_failure(failure("e"))
        assert not is_valid(invalid(1, "e"))
        assert not is_invalid(failure("e"))
        assert not is_failure(valid(1))

    def test_guards_reject_non_results(self):
        assert not is_valid("valid")
        assert not is_invalid(None)
        assert not is_failure(Exception("boom"))

    def test_classes_match_guards(self):
        assert isinstance(valid(1), Valid)
        assert isinstance(invalid(1, "e"), Invalid)
        assert isinstance(failure("e"), Failure)


class TestBind:
    """Test sequencing of results."""

    def test_failure_is_returned_unchanged(self):
        """Test the binding is never invoked on a failure."""
        calls = []
        result = failure("boom")

        bound = result.bind(lambda value: calls.append(value) or valid(value))

        assert bound is result
        assert calls == []

    def test_valid_then_valid(self):
        """Test warnings concatenate in order and the next value wins."""
        result = valid(1, "w1").bind(lambda value: valid(value + 1, "w2"))
        assert is_valid(result)
        assert result.value == 2
        assert result.warnings == ("w1", "w2")

    def test_invalid_then_valid_stays_invalid(self):
        """Test earlier errors make the combined result invalid."""
        result = invalid(1, "e1").bind(lambda value: valid(value * 3))
        assert is_invalid(result)
        assert result.value == 3
        assert result.errors == ("e1",)

    def test_valid_then_failure(self):
        """Test a failing step drops the value but keeps diagnostics."""
        result = valid(1, "w1").bind(lambda value: failure("e2", "w2"))
        assert is_failure(result)
        assert result.errors == ("e2",)
        assert result.warnings == ("w1", "w2")

    def test_invalid_then_failure_keeps_earlier_errors(self):
        """Test errors collected before the failing step survive."""
        result = invalid(1, "e1", "w1").bind(lambda value: failure("e2"))
        assert is_failure(result)
        assert result.errors == ("e1", "e2")
        assert result.warnings == ("w1",)

    def test_captures_are_crossed(self):
        """Test captures of both steps end up in the combined result."""
        key = create_capture_key("step")
        recorded = Capture(1, valid(1))
        captures = CaptureSet.singleton(key, recorded)

        result = valid(1).bind(lambda value: valid(value, captures=[captures]))

        assert result.get(key) == [recorded]
        assert result.get_canonical(key) is recorded

    def test_binding_must_return_a_result(self):
        """Test a binding returning a plain value is a programming error."""
        with pytest.raises(ResultInvariantError):
            valid(1).bind(lambda value: value)

    def test_diagnostics_are_associative(self):
        """Test grouping of three steps does not change diagnostics."""

        def step(label):
            return lambda value: invalid(value, f"e{label}", f"w{label}")

        start = valid(0, "w0")
        left = start.bind(step(1)).bind(step(2))
        right = start.bind(lambda value: step(1)(value).bind(step(2)))

        assert left.errors == right.errors == ("e1", "e2")
        assert left.warnings == right.warnings == ("w0", "w1", "w2")


class TestCaptureLookup:
    """Test get and get_canonical."""

    def test_failure_has_no_slots(self):
        key = create_capture_key()
        assert failure("boom").get(key) == []
        assert failure("boom").get_canonical(key) is None

    def test_one_slot_per_capture_set(self):
        """Test absent keys are reported as None slots."""
        key = create_capture_key()
        recorded = Capture("in", valid("out"))
        result = valid(1, captures=[CaptureSet.singleton(key, recorded), CaptureSet()])

        assert result.get(key) == [recorded, None]
        assert result.get_canonical(key) is recorded

    def test_canonical_requires_a_single_distinct_capture(self):
        """Test distinct captures across worlds are ambiguous."""
        key = create_capture_key()
        first = Capture(1, valid(1))
        second = Capture(2, valid(2))
        result = valid(
            None,
            captures=[CaptureSet.singleton(key, first), CaptureSet.singleton(key, second)],
        )

        assert result.get(key) == [first, second]
        assert result.get_canonical(key) is None

    def test_canonical_with_repeated_capture(self):
        """Test the same capture in every world is canonical."""
        key = create_capture_key()
        recorded = Capture(1, valid(1))
        capture_set = CaptureSet.singleton(key, recorded)
        result = valid(None, captures=[capture_set, CaptureSet([capture_set])])

        assert result.get_canonical(key) is recorded

    def test_canonical_absent_key(self):
        key = create_capture_key()
        assert valid(1).get_canonical(key) is None
