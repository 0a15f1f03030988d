"""Tests for the memoized traversal engine."""

import logging

import pytest

from knobshape import configure
from knobshape.config import EngineSettings
from knobshape.engine import Traversal, describe, transform
from knobshape.exceptions import ResultInvariantError
from knobshape.result import is_valid, valid
from knobshape.shapes import constant


@pytest.fixture
def counted():
    """A leaf transformer that records every input it is invoked with."""
    calls = []

    def leaf(value, traverse):
        calls.append(value)
        return valid(value)

    leaf.calls = calls
    return leaf


class TestMemoization:
    """Test per-call memoization by transformer and input identity."""

    def test_same_pair_returns_identical_result(self, counted):
        def root(value, traverse):
            return valid(traverse(value, counted) is traverse(value, counted))

        result = transform([1], root)

        assert result.value is True
        assert len(counted.calls) == 1

    def test_equal_but_distinct_inputs_are_not_shared(self, counted):
        """Test containers are keyed by identity, not structure."""

        def root(value, traverse):
            first, second = value
            return valid(traverse(first, counted) is traverse(second, counted))

        result = transform(([1], [1]), root)

        assert result.value is False
        assert len(counted.calls) == 2

    def test_scalars_are_keyed_by_value(self, counted):
        """Test distinct but equal scalar objects share one result."""

        def root(value, traverse):
            first, second = value
            return valid(traverse(first, counted) is traverse(second, counted))

        result = transform((int("100000"), int("100000")), root)

        assert result.value is True
        assert len(counted.calls) == 1

    def test_scalar_type_is_part_of_key(self, counted):
        def root(value, traverse):
            return valid(traverse(1, counted) is traverse(True, counted))

        assert transform(None, root).value is False
        assert counted.calls == [1, True]

    def test_cache_is_private_to_each_call(self, counted):
        transform("input", counted)
        transform("input", counted)
        assert counted.calls == ["input", "input"]

    def test_input_is_not_modified(self):
        data = {"a": [1, 2]}

        def root(value, traverse):
            return valid({**value, "b": 3})

        result = transform(data, root)

        assert result.value == {"a": [1, 2], "b": 3}
        assert data == {"a": [1, 2]}


class TestProduction:
    """Test the association between results and their producers."""

    def test_result_is_tagged_with_producer(self, counted):
        traversal = Traversal(EngineSettings())
        result = traversal(1, counted)
        assert traversal.producer_of(result) is counted

    def test_pass_through_takes_over_producer(self, counted):
        """Test the latest transformer returning a result is its producer."""

        def passthrough(value, traverse):
            return traverse(value, counted)

        traversal = Traversal(EngineSettings())
        result = traversal(1, passthrough)

        assert traversal.producer_of(result) is passthrough

    def test_cache_hit_does_not_retag(self, counted):
        def passthrough(value, traverse):
            return traverse(value, counted)

        traversal = Traversal(EngineSettings())
        result = traversal(1, passthrough)
        traversal(1, counted)

        assert traversal.producer_of(result) is passthrough

    def test_untraversed_result_has_no_producer(self):
        assert Traversal(EngineSettings()).producer_of(valid(1)) is None

    def test_production_is_scoped_to_traversal(self):
        """Test a result shared between calls is tagged per traversal."""
        shared = valid(1)

        def first(value, traverse):
            return shared

        def second(value, traverse):
            return shared

        one = Traversal(EngineSettings())
        two = Traversal(EngineSettings())
        one(None, first)
        two(None, second)

        assert one.producer_of(shared) is first
        assert two.producer_of(shared) is second


class TestTraversal:
    """Test the traversal handle directly."""

    def test_stats(self, counted):
        def root(value, traverse):
            traverse(value, counted)
            traverse(value, counted)
            return valid(value)

        traversal = Traversal(EngineSettings())
        traversal([1], root)

        assert traversal.stats.invocations == 2
        assert traversal.stats.cache_hits == 1
        assert traversal.stats.max_depth == 2
        assert len(traversal) == 2

    def test_uses_process_settings_by_default(self):
        configure(EngineSettings(trace=True))
        assert Traversal().settings.trace is True

    def test_non_result_is_rejected(self):
        with pytest.raises(ResultInvariantError):
            transform(1, lambda value, traverse: value)

    def test_exceptions_propagate(self):
        def broken(value, traverse):
            raise ValueError("broken transformer")

        with pytest.raises(ValueError, match="broken transformer"):
            transform(1, broken)


class TestLogging:
    """Test traversal logging."""

    def test_trace_logs_each_invocation(self, caplog):
        caplog.set_level(logging.DEBUG, logger="knobshape.engine")

        result = transform(1, constant(1), settings=EngineSettings(trace=True))

        assert is_valid(result)
        assert any("Constant(1) -> valid" in r.getMessage() for r in caplog.records)

    def test_no_trace_by_default(self, caplog):
        caplog.set_level(logging.DEBUG, logger="knobshape.engine")

        transform(1, constant(1))

        assert not any("->" in r.getMessage() for r in caplog.records)
        assert any("1 invocations" in r.getMessage() for r in caplog.records)

    def test_describe(self, counted):
        assert describe(counted).endswith("leaf")
        assert describe(constant(2)) == "Constant(2)"
