"""Result types for transformers and the rules for sequencing them.

Every transformer returns exactly one of:

- ``Valid``: a value, with warnings and capture sets
- ``Invalid``: a best-effort value plus at least one error
- ``Failure``: at least one error and no value; the input could not be
  interpreted at all

Warnings never change the kind of a result. Errors accumulate additively
through ``bind``; a ``Failure`` stops value and capture propagation but keeps
every diagnostic gathered before it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeGuard, TypeVar, Union

from .captures import CaptureKey, Capture, CaptureSet, cross_product
from .exceptions import ResultInvariantError

T = TypeVar("T")
U = TypeVar("U")
I = TypeVar("I")  # noqa: E741
O = TypeVar("O")  # noqa: E741

Messages = Union[str, Iterable[str]]


class ResultKind(Enum):
    """Kind of a transformer result."""

    VALID = "valid"
    INVALID = "invalid"
    FAILURE = "failure"


def _messages(messages: Messages | None) -> tuple[str, ...]:
    if messages is None:
        return ()
    if isinstance(messages, str):
        return (messages,)
    return tuple(messages)


def _captures(captures: Iterable[CaptureSet] | None) -> tuple[CaptureSet, ...]:
    if captures is None:
        return (CaptureSet(),)
    return tuple(captures)


class _ResultBase(Generic[T]):
    """Behaviour shared by all result kinds."""

    kind: ResultKind

    def __bool__(self) -> bool:
        """Allow 'if result:' usage to check for a clean success."""
        return self.kind is ResultKind.VALID

    def bind(self, binding: Callable[[T], Result[U]]) -> Result[U]:
        """Sequence another validation step onto this result.

        Args:
            binding: Function from this result's value to the next result

        Returns:
            The combined result. A Failure is returned unchanged without
            invoking ``binding``. Otherwise warnings and errors are
            concatenated (this result's first), a Failure from ``binding``
            keeps them, and captures are cross-multiplied.
        """
        match self:
            case Failure():
                return self
            case Valid() | Invalid():
                pass
            case _:
                raise ResultInvariantError(
                    f"Unrecognized result type: {type(self).__name__}"
                )

        following = binding(self.value)
        if not isinstance(following, (Valid, Invalid, Failure)):
            raise ResultInvariantError(
                f"Binding returned {type(following).__name__}, expected a result",
                context={"binding": repr(binding)},
            )
        warnings = self.warnings + following.warnings
        errors = self.errors + following.errors

        match following:
            case Failure():
                return Failure(errors, warnings)
            case Valid() | Invalid():
                captures = tuple(cross_product([self.captures, following.captures]))

        if errors:
            return Invalid(following.value, errors, warnings, captures)
        return Valid(following.value, warnings, captures)

    def get(self, key: CaptureKey[I, O]) -> list[Capture[I, O] | None]:
        """Look up ``key`` in every capture set of this result.

        Returns:
            One slot per capture set, None where the key is absent or
            overloaded. Failures carry no captures and return an empty list.
        """
        match self:
            case Failure():
                return []
            case Valid() | Invalid():
                return [capture_set.get(key) for capture_set in self.captures]
            case _:
                raise ResultInvariantError(
                    f"Unrecognized result type: {type(self).__name__}"
                )

    def get_canonical(self, key: CaptureKey[I, O]) -> Capture[I, O] | None:
        """Return the single unambiguous capture for ``key``.

        A captured transformer may run more than once with different
        outcomes (alternation, repeated sub-validation). The canonical
        capture exists only when every world that defines ``key`` agrees on
        the same capture.

        Returns:
            The capture, or None when zero or several distinct captures exist
        """
        distinct = {id(found): found for found in self.get(key) if found is not None}
        if len(distinct) == 1:
            return next(iter(distinct.values()))
        return None


@dataclass(frozen=True)
class Valid(_ResultBase[T]):
    """A clean success."""

    value: T
    warnings: tuple[str, ...] = ()
    captures: tuple[CaptureSet, ...] = field(default_factory=lambda: (CaptureSet(),))

    kind = ResultKind.VALID

    def __post_init__(self) -> None:
        object.__setattr__(self, "warnings", _messages(self.warnings))
        object.__setattr__(self, "captures", tuple(self.captures))

    @property
    def errors(self) -> tuple[str, ...]:
        return ()


@dataclass(frozen=True)
class Invalid(_ResultBase[T]):
    """A usable value that failed one or more constraints."""

    value: T
    errors: tuple[str, ...]
    warnings: tuple[str, ...] = ()
    captures: tuple[CaptureSet, ...] = field(default_factory=lambda: (CaptureSet(),))

    kind = ResultKind.INVALID

    def __post_init__(self) -> None:
        object.__setattr__(self, "errors", _messages(self.errors))
        object.__setattr__(self, "warnings", _messages(self.warnings))
        object.__setattr__(self, "captures", tuple(self.captures))
        if not self.errors:
            raise ResultInvariantError("An Invalid result requires at least one error")


@dataclass(frozen=True)
class Failure(_ResultBase[T]):
    """An input whose shape could not be interpreted. Has no value."""

    errors: tuple[str, ...]
    warnings: tuple[str, ...] = ()

    kind = ResultKind.FAILURE

    def __post_init__(self) -> None:
        object.__setattr__(self, "errors", _messages(self.errors))
        object.__setattr__(self, "warnings", _messages(self.warnings))
        if not self.errors:
            raise ResultInvariantError("A Failure result requires at least one error")


Result = Union[Valid[T], Invalid[T], Failure[T]]


def valid(
    value: T,
    warnings: Messages | None = None,
    captures: Iterable[CaptureSet] | None = None,
) -> Valid[T]:
    """Create a Valid result.

    Args:
        value: The validated value
        warnings: A warning or sequence of warnings
        captures: Capture sets; defaults to a single empty capture set

    Returns:
        Valid result
    """
    return Valid(value, _messages(warnings), _captures(captures))


def invalid(
    value: T,
    errors: Messages,
    warnings: Messages | None = None,
    captures: Iterable[CaptureSet] | None = None,
) -> Invalid[T]:
    """Create an Invalid result.

    Args:
        value: The best-effort value
        errors: An error or non-empty sequence of errors
        warnings: A warning or sequence of warnings
        captures: Capture sets; defaults to a single empty capture set

    Returns:
        Invalid result

    Raises:
        ResultInvariantError: If no errors are given
    """
    return Invalid(value, _messages(errors), _messages(warnings), _captures(captures))


def failure(errors: Messages, warnings: Messages | None = None) -> Failure[Any]:
    """Create a Failure result.

    Args:
        errors: An error or non-empty sequence of errors
        warnings: A warning or sequence of warnings

    Returns:
        Failure result

    Raises:
        ResultInvariantError: If no errors are given
    """
    return Failure(_messages(errors), _messages(warnings))


def is_valid(result: object) -> TypeGuard[Valid[Any]]:
    """Check whether ``result`` is a clean success."""
    return isinstance(result, Valid)


def is_invalid(result: object) -> TypeGuard[Invalid[Any]]:
    """Check whether ``result`` carries a value and errors."""
    return isinstance(result, Invalid)


def is_failure(result: object) -> TypeGuard[Failure[Any]]:
    """Check whether ``result`` failed without a value."""
    return isinstance(result, Failure)


__all__ = [
    "Failure",
    "Invalid",
    "Result",
    "ResultKind",
    "Valid",
    "failure",
    "invalid",
    "is_failure",
    "is_invalid",
    "is_valid",
    "valid",
]
