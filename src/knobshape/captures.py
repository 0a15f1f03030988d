"""Capture keys, capture records and capture-set merging.

A capture key tags a transformer so that its raw input and output can be
looked up on the final result by identity, wherever in the output tree the
transformer ran. Each execution of a captured transformer is recorded as a
``Capture`` inside a ``CaptureSet``. Sibling results may each carry several
capture sets ("worlds"), so merging them is a cross product rather than a
zip.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .exceptions import CompositionError

if TYPE_CHECKING:
    from .result import Result

I = TypeVar("I")  # noqa: E741
O = TypeVar("O")  # noqa: E741


class CaptureKey(Generic[I, O]):
    """Opaque identity token naming one thing worth capturing.

    Two keys are equal only if they are the same object. The optional name
    is a debugging label and shows up in ``repr`` only.
    """

    __slots__ = ("name",)

    def __init__(self, name: str | None = None):
        self.name = name

    def __repr__(self) -> str:
        label = self.name or hex(id(self))
        return f"CaptureKey({label})"


def create_capture_key(name: str | None = None) -> CaptureKey[Any, Any]:
    """Create a new capture key.

    Keys are meant to be created once, next to the transformer tree that
    uses them, and reused across many validations.

    Args:
        name: Optional label used in ``repr``

    Returns:
        A fresh CaptureKey, equal only to itself
    """
    return CaptureKey(name)


@dataclass(frozen=True, eq=False)
class Capture(Generic[I, O]):
    """Record of one execution of a captured transformer.

    Captures compare by identity: the traversal memoizes every
    (transformer, input) pair, so one execution yields exactly one record.
    """

    input: I
    output: Result[O]


class CaptureSet:
    """Mapping from capture keys to captures, with overloaded-key tracking.

    A key is either absent, defined (mapped to exactly one capture) or
    overloaded (two or more distinct captures were offered for it). Once
    overloaded, a key never resolves to a capture again.

    The set is built from other capture sets and is not modified afterwards.
    """

    __slots__ = ("_defined", "_overloaded")

    def __init__(self, capture_sets: Iterable[CaptureSet] = ()):
        """Merge capture sets into a new one.

        Args:
            capture_sets: Capture sets whose keys are combined, in order
        """
        self._defined: dict[CaptureKey[Any, Any], Capture[Any, Any]] = {}
        self._overloaded: set[CaptureKey[Any, Any]] = set()

        capture_sets = list(capture_sets)
        for capture_set in capture_sets:
            self._overloaded.update(capture_set._overloaded)
        for capture_set in capture_sets:
            for key, value in capture_set._defined.items():
                self._add(key, value)

    @classmethod
    def singleton(cls, key: CaptureKey[I, O], capture: Capture[I, O]) -> CaptureSet:
        """Create a capture set holding a single capture."""
        capture_set = cls()
        capture_set._add(key, capture)
        return capture_set

    def _add(self, key: CaptureKey[Any, Any], capture: Capture[Any, Any]) -> None:
        if key in self._overloaded:
            return
        existing = self._defined.get(key)
        if existing is None:
            self._defined[key] = capture
        elif existing is not capture:
            del self._defined[key]
            self._overloaded.add(key)

    def get(self, key: CaptureKey[I, O]) -> Capture[I, O] | None:
        """Return the capture defined for ``key``, or None if absent or overloaded."""
        return self._defined.get(key)

    def is_overloaded(self, key: CaptureKey[Any, Any]) -> bool:
        return key in self._overloaded

    @property
    def defined_keys(self) -> frozenset[CaptureKey[Any, Any]]:
        return frozenset(self._defined)

    @property
    def overloaded_keys(self) -> frozenset[CaptureKey[Any, Any]]:
        return frozenset(self._overloaded)

    def __contains__(self, key: object) -> bool:
        return key in self._defined

    def __len__(self) -> int:
        return len(self._defined)

    def __iter__(self) -> Iterator[CaptureKey[Any, Any]]:
        return iter(self._defined)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CaptureSet):
            return NotImplemented
        return self._defined == other._defined and self._overloaded == other._overloaded

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        defined = ", ".join(repr(key) for key in self._defined)
        overloaded = ", ".join(repr(key) for key in self._overloaded)
        return f"CaptureSet(defined=[{defined}], overloaded=[{overloaded}])"


def cross_product(captures: Sequence[Sequence[CaptureSet]]) -> list[CaptureSet]:
    """Combine sibling capture-set worlds into every paired world.

    Each entry of ``captures`` lists the worlds of one independent sibling.
    The result holds one merged capture set per combination of worlds.

    Args:
        captures: One list of capture sets per sibling

    Returns:
        The merged capture sets, one per combination

    Raises:
        CompositionError: If no sibling lists are given
    """
    if len(captures) == 0:
        raise CompositionError(
            "cross product is undefined when no capture set lists are provided"
        )
    if len(captures) == 1:
        return list(captures[0])

    first, rest = captures[0], captures[1:]
    crossed = cross_product(rest)
    if len(first) == 0:
        return crossed
    # TODO: build the combinations lazily, wide trees multiply worlds quickly
    return [CaptureSet([left, right]) for left in first for right in crossed]


__all__ = [
    "Capture",
    "CaptureKey",
    "CaptureSet",
    "create_capture_key",
    "cross_product",
]
