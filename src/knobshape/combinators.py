"""Combinators for building transformer trees.

Transformers are plain callables ``(value, traverse) -> Result``. The
combinators here compose them:

- ``chain``: run stages in sequence, each consuming the previous value
- ``union``: first alternative that is Valid wins
- ``intersection``: every transformer must accept the same input
- ``capture``: record a transformer's input and output under a key
- ``merge_results``: fold sibling results into one, used by the shapes

Combinator instances also compose with operators:

    ```python
    number = instance(int) | instance(float)
    positive = number & predicate(lambda n: n > 0, "'{value}' is not positive")
    doubled = positive >> (lambda n, traverse: valid(n * 2))
    ```
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any

from .captures import Capture, CaptureKey, CaptureSet, cross_product
from .config import get_settings
from .engine import TransformFn, Traversal, describe
from .exceptions import CompositionError, ResultInvariantError
from .result import Failure, Invalid, Result, Valid, failure, invalid, valid

logger = logging.getLogger(__name__)


class Transformer(ABC):
    """Base class for library transformers with composable operators."""

    @abstractmethod
    def __call__(self, value: Any, traverse: Traversal) -> Result[Any]:
        """Transform a value.

        Args:
            value: Input value
            traverse: Traversal handle used to run child transformers

        Returns:
            Result of the transformation
        """
        pass

    def __or__(self, other: TransformFn) -> AnyOf:
        """Combine with OR: the first Valid alternative wins."""
        return AnyOf(*_flatten(AnyOf, [self, other]))

    def __ror__(self, other: TransformFn) -> AnyOf:
        return AnyOf(*_flatten(AnyOf, [other, self]))

    def __and__(self, other: TransformFn) -> AllOf:
        """Combine with AND: both transformers must accept the input."""
        return AllOf(*_flatten(AllOf, [self, other]))

    def __rand__(self, other: TransformFn) -> AllOf:
        return AllOf(*_flatten(AllOf, [other, self]))

    def __rshift__(self, other: TransformFn) -> Chain:
        """Sequence: feed this transformer's value into ``other``."""
        return Chain(*_flatten(Chain, [self, other]))

    def __rrshift__(self, other: TransformFn) -> Chain:
        return Chain(*_flatten(Chain, [other, self]))


def _flatten(kind: type, transformers: Iterable[TransformFn]) -> list[TransformFn]:
    flattened: list[TransformFn] = []
    for transformer in transformers:
        if isinstance(transformer, kind):
            flattened.extend(transformer.transformers)  # type: ignore[attr-defined]
        else:
            flattened.append(transformer)
    return flattened


def _describe_all(transformers: Iterable[TransformFn]) -> str:
    return ", ".join(describe(t) for t in transformers)


class Chain(Transformer):
    """Run transformers in sequence, binding each result into the next."""

    def __init__(self, *transformers: TransformFn):
        if not transformers:
            raise CompositionError(
                "chain requires at least one transformer", context={"combinator": "chain"}
            )
        self.transformers = tuple(transformers)

    def __call__(self, value: Any, traverse: Traversal) -> Result[Any]:
        first, rest = self.transformers[0], self.transformers[1:]
        result = traverse(value, first)
        for transformer in rest:
            result = result.bind(lambda last, t=transformer: traverse(last, t))
        return result

    def __repr__(self) -> str:
        return f"Chain({_describe_all(self.transformers)})"


def _check_not_empty(combinator: str, transformers: tuple[TransformFn, ...]) -> None:
    if transformers:
        return
    if get_settings().strict_composition:
        raise CompositionError(
            f"{combinator} requires at least one transformer",
            context={"combinator": combinator},
        )
    logger.warning(f"Building an empty {combinator}")


class AnyOf(Transformer):
    """Eager, short-circuiting alternation over the same input.

    Alternatives are tried in order and the first Valid result is returned
    as is. Otherwise the first Invalid, then the first Failure, is returned.
    """

    def __init__(self, *transformers: TransformFn):
        _check_not_empty("union", transformers)
        self.transformers = tuple(transformers)

    def __call__(self, value: Any, traverse: Traversal) -> Result[Any]:
        first_invalid: Result[Any] | None = None
        first_failure: Result[Any] | None = None
        for transformer in self.transformers:
            result = traverse(value, transformer)
            match result:
                case Valid():
                    return result
                case Invalid():
                    if first_invalid is None:
                        first_invalid = result
                case Failure():
                    if first_failure is None:
                        first_failure = result
        if first_invalid is not None:
            return first_invalid
        if first_failure is not None:
            return first_failure
        return failure("No alternatives were provided to union")

    def __repr__(self) -> str:
        return f"AnyOf({_describe_all(self.transformers)})"


class AllOf(Transformer):
    """Check independent constraints on one value without altering it."""

    def __init__(self, *transformers: TransformFn):
        _check_not_empty("intersection", transformers)
        self.transformers = tuple(transformers)

    def __call__(self, value: Any, traverse: Traversal) -> Result[Any]:
        return merge_results(
            [traverse(value, transformer) for transformer in self.transformers],
            lambda _: valid(value),
            traverse,
        )

    def __repr__(self) -> str:
        return f"AllOf({_describe_all(self.transformers)})"


class Captured(Transformer):
    """Record the input and output of a transformer under a capture key."""

    def __init__(self, key: CaptureKey[Any, Any], transformer: TransformFn):
        self.key = key
        self.transformer = transformer

    def __call__(self, value: Any, traverse: Traversal) -> Result[Any]:
        output = traverse(value, self.transformer)
        captures = CaptureSet.singleton(self.key, Capture(value, output))
        return output.bind(lambda result_value: valid(result_value, captures=[captures]))

    def __repr__(self) -> str:
        return f"Captured({self.key!r}, {describe(self.transformer)})"


def chain(*transformers: TransformFn) -> Chain:
    """Sequence transformers, each consuming the previous stage's value.

    A Failure at any stage stops the chain and keeps the diagnostics of the
    stages before it; errors from every stage accumulate.

    Raises:
        CompositionError: If no transformers are given
    """
    return Chain(*transformers)


def union(*transformers: TransformFn) -> AnyOf:
    """First-match alternation over the same input.

    Raises:
        CompositionError: If no transformers are given and composition is strict
    """
    return AnyOf(*transformers)


def intersection(*transformers: TransformFn) -> AllOf:
    """All transformers must accept the input, which is returned unchanged.

    Raises:
        CompositionError: If no transformers are given and composition is strict
    """
    return AllOf(*transformers)


def capture(key: CaptureKey[Any, Any], transformer: TransformFn) -> Captured:
    """Wrap ``transformer`` so each execution is recorded under ``key``."""
    return Captured(key, transformer)


def merge_results(
    results: Iterable[Result[Any]],
    mapping: Callable[[list[Any]], Result[Any]],
    traverse: Traversal | None = None,
) -> Result[Any]:
    """Fold sibling results into one result.

    Warnings and errors are collected from every result, even past a
    Failure. Values and capture sets are collected up to the first Failure.
    Capture sets of results sharing a producer are alternative worlds of one
    dimension; distinct producers are cross-multiplied.

    Args:
        results: Sibling results, in order
        mapping: Builds the combined result from the collected values
        traverse: Traversal the results were produced in; without one every
            result counts as having no producer

    Returns:
        Failure if any sibling or the mapping failed; otherwise the mapped
        value with all diagnostics, Invalid if any error was collected
    """
    results = list(results)
    warnings = tuple(warning for result in results for warning in result.warnings)
    errors = tuple(error for result in results for error in result.errors)

    values: list[Any] = []
    groups: dict[int, list[CaptureSet]] = {}
    for result in results:
        match result:
            case Failure():
                break
            case Valid() | Invalid():
                values.append(result.value)
                producer = traverse.producer_of(result) if traverse is not None else None
                groups.setdefault(id(producer), []).extend(result.captures)
            case _:
                raise ResultInvariantError(
                    f"Cannot merge {type(result).__name__}, expected a result"
                )

    if len(values) < len(results):
        return failure(errors, warnings)

    mapped = mapping(values)
    match mapped:
        case Failure():
            return failure(mapped.errors + errors, mapped.warnings + warnings)
        case Valid() | Invalid():
            pass
        case _:
            raise ResultInvariantError(
                f"Mapping returned {type(mapped).__name__}, expected a result"
            )

    captures = cross_product(list(groups.values())) if groups else [CaptureSet()]
    if errors:
        return mapped.bind(lambda merged: invalid(merged, errors, warnings, captures))
    return mapped.bind(lambda merged: valid(merged, warnings, captures))


__all__ = [
    "AllOf",
    "AnyOf",
    "Captured",
    "Chain",
    "Transformer",
    "capture",
    "chain",
    "intersection",
    "merge_results",
    "union",
]
