"""Shape transformers for plain data: scalars, mappings and sequences.

Type mismatches are Failures: the input cannot be interpreted as the
expected shape. Value mismatches of the right type are Invalid and keep the
received value.

Typical usage example:

    ```python
    from knobshape import transform
    from knobshape.shapes import array_collection, constant, instance, object_shape

    point = object_shape({
        "x": instance(int),
        "y": instance(int),
        "tags": array_collection(instance(str)),
        "version": constant(2),
    })

    result = transform({"x": 1, "y": 2, "tags": [], "version": 2}, point)
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from .combinators import Transformer, chain, merge_results
from .engine import TransformFn, Traversal, describe
from .result import Result, failure, invalid, valid

# Checked by exact type: a bool is not accepted where an int is expected.
_PRIMITIVE_TYPES = (int, float, str, bool)


def _type_name(value: Any) -> str:
    return type(value).__name__


def _matches(value: Any, expected: type) -> bool:
    if expected in _PRIMITIVE_TYPES:
        return type(value) is expected
    return isinstance(value, expected)


class Constant(Transformer):
    """Accept exactly one scalar value."""

    def __init__(self, value: Any):
        self.value = value

    def __call__(self, value: Any, traverse: Traversal) -> Result[Any]:
        if type(value) is not type(self.value):
            return failure(
                f"Received input of type '{_type_name(value)}' "
                f"where '{_type_name(self.value)}' was expected"
            )
        if value == self.value:
            return valid(value)
        return invalid(
            value, f"Received input with value '{value}' where '{self.value}' was expected"
        )

    def __repr__(self) -> str:
        return f"Constant({self.value!r})"


class Instance(Transformer):
    """Accept values of a type, or of any type in a tuple of types."""

    def __init__(self, expected: type | tuple[type, ...]):
        self.expected = expected if isinstance(expected, tuple) else (expected,)

    @property
    def type_name(self) -> str:
        return " | ".join(t.__name__ for t in self.expected)

    def __call__(self, value: Any, traverse: Traversal) -> Result[Any]:
        if any(_matches(value, expected) for expected in self.expected):
            return valid(value)
        if all(expected in _PRIMITIVE_TYPES for expected in self.expected):
            return failure(
                f"Received input of type '{_type_name(value)}' "
                f"where '{self.type_name}' was expected"
            )
        return failure(f"Received input was not an instance of {self.type_name}")

    def __repr__(self) -> str:
        return f"Instance({self.type_name})"


_MAPPING = Instance(Mapping)
# Strings and bytes are sequences too, but never arrays.
_ARRAY = Instance((list, tuple))


class ObjectShape(Transformer):
    """Validate declared keys of a mapping, each with its own transformer.

    Missing keys are read as None. The output is a new dict holding the
    declared keys in declaration order; undeclared keys are dropped.
    """

    def __init__(self, pattern: Mapping[str, TransformFn]):
        self.pattern = dict(pattern)
        self._shape = chain(_MAPPING, self._merge_fields)

    def _merge_fields(self, obj: Mapping[str, Any], traverse: Traversal) -> Result[Any]:
        keys = list(self.pattern)
        return merge_results(
            [traverse(obj.get(key), self.pattern[key]) for key in keys],
            lambda values: valid(dict(zip(keys, values))),
            traverse,
        )

    def __call__(self, value: Any, traverse: Traversal) -> Result[Any]:
        return self._shape(value, traverse)

    def __repr__(self) -> str:
        fields = ", ".join(f"{key!r}: {describe(t)}" for key, t in self.pattern.items())
        return f"ObjectShape({{{fields}}})"


class ObjectCollection(Transformer):
    """Apply one transformer to the value of every key of a mapping."""

    def __init__(self, transformer: TransformFn):
        self.transformer = transformer
        self._shape = chain(_MAPPING, self._merge_values)

    def _merge_values(self, obj: Mapping[str, Any], traverse: Traversal) -> Result[Any]:
        keys = list(obj)
        return merge_results(
            [traverse(obj[key], self.transformer) for key in keys],
            lambda values: valid(dict(zip(keys, values))),
            traverse,
        )

    def __call__(self, value: Any, traverse: Traversal) -> Result[Any]:
        return self._shape(value, traverse)

    def __repr__(self) -> str:
        return f"ObjectCollection({describe(self.transformer)})"


class ArrayShape(Transformer):
    """Validate a fixed-length sequence position by position."""

    def __init__(self, pattern: Sequence[TransformFn]):
        self.pattern = tuple(pattern)
        self._shape = chain(_ARRAY, self._merge_items)

    def _merge_items(self, arr: Sequence[Any], traverse: Traversal) -> Result[Any]:
        if len(arr) != len(self.pattern):
            return failure(
                f"Received input of length {len(arr)} "
                f"where length {len(self.pattern)} was expected"
            )
        return merge_results(
            [traverse(item, t) for item, t in zip(arr, self.pattern)],
            lambda values: valid(list(values)),
            traverse,
        )

    def __call__(self, value: Any, traverse: Traversal) -> Result[Any]:
        return self._shape(value, traverse)

    def __repr__(self) -> str:
        return f"ArrayShape([{', '.join(describe(t) for t in self.pattern)}])"


class ArrayCollection(Transformer):
    """Apply one transformer to every element of a sequence."""

    def __init__(self, transformer: TransformFn):
        self.transformer = transformer
        self._shape = chain(_ARRAY, self._merge_items)

    def _merge_items(self, arr: Sequence[Any], traverse: Traversal) -> Result[Any]:
        return merge_results(
            [traverse(item, self.transformer) for item in arr],
            lambda values: valid(list(values)),
            traverse,
        )

    def __call__(self, value: Any, traverse: Traversal) -> Result[Any]:
        return self._shape(value, traverse)

    def __repr__(self) -> str:
        return f"ArrayCollection({describe(self.transformer)})"


class Predicate(Transformer):
    """Accept values for which a check returns true; otherwise Invalid.

    The message is formatted with the received value, e.g.
    ``"'{value}' is not positive"``.
    """

    def __init__(self, check: Callable[[Any], bool], message: str | None = None):
        self.check = check
        self.message = message or "Received input with value '{value}' that failed a check"

    def __call__(self, value: Any, traverse: Traversal) -> Result[Any]:
        if self.check(value):
            return valid(value)
        return invalid(value, self.message.format(value=value))

    def __repr__(self) -> str:
        return f"Predicate({describe(self.check)})"


def constant(value: Any) -> Constant:
    """Accept only ``value``; same type but unequal is Invalid, other types Fail."""
    return Constant(value)


def instance(expected: type | tuple[type, ...]) -> Instance:
    """Accept instances of ``expected``; a mismatch is always a Failure.

    ``int``, ``float``, ``str`` and ``bool`` are matched by exact type, other
    classes (including abstract base classes) with ``isinstance``.
    """
    return Instance(expected)


def object_shape(pattern: Mapping[str, TransformFn]) -> ObjectShape:
    return ObjectShape(pattern)


def object_collection(transformer: TransformFn) -> ObjectCollection:
    return ObjectCollection(transformer)


def array_shape(pattern: Sequence[TransformFn]) -> ArrayShape:
    return ArrayShape(pattern)


def array_collection(transformer: TransformFn) -> ArrayCollection:
    return ArrayCollection(transformer)


def predicate(check: Callable[[Any], bool], message: str | None = None) -> Predicate:
    return Predicate(check, message)


__all__ = [
    "ArrayCollection",
    "ArrayShape",
    "Constant",
    "Instance",
    "ObjectCollection",
    "ObjectShape",
    "Predicate",
    "array_collection",
    "array_shape",
    "constant",
    "instance",
    "object_collection",
    "object_shape",
    "predicate",
]
