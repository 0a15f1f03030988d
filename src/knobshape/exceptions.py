"""Exception hierarchy for knobshape.

Validation outcomes are never raised: a transformer that rejects its input
returns an ``Invalid`` or ``Failure`` result. The exceptions here signal
programming errors in how transformers, results or settings were put
together, and are raised immediately.

Example:
    ```python
    from knobshape.exceptions import CompositionError, KnobshapeError

    try:
        cross_product([])
    except CompositionError as e:
        logger.error(f"Error: {e}")
        if e.context:
            logger.error(f"Context: {e.context}")
    ```
"""

from typing import Any, Dict


class KnobshapeError(Exception):
    """Base exception for all knobshape errors.

    Attributes:
        context: Dictionary containing contextual information about the error
        details: Alias for context

    Args:
        message: Human-readable error message
        context: Optional dictionary with error context
        details: Alternative to context (takes precedence when both are given)
    """

    def __init__(
        self,
        message: str,
        context: Dict[str, Any] | None = None,
        details: Dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.context = details or context or {}
        self.details = self.context


class CompositionError(KnobshapeError):
    """Raised when the combinator algebra is used in an undefined way.

    Common scenarios include:
    - Taking the cross product of zero capture-set lists
    - Building a chain with no stages
    - Building an empty union or intersection under strict composition

    Example:
        ```python
        raise CompositionError(
            "union requires at least one alternative",
            context={"combinator": "union"}
        )
        ```
    """

    pass


class ResultInvariantError(KnobshapeError):
    """Raised when a result would violate the invariants of its kind.

    An ``Invalid`` or ``Failure`` needs at least one error, and dispatch on
    result kind only accepts ``Valid``, ``Invalid`` and ``Failure``.
    """

    pass


class ConfigurationError(KnobshapeError):
    """Raised when engine settings are invalid or cannot be loaded."""

    pass


__all__ = [
    "KnobshapeError",
    "CompositionError",
    "ResultInvariantError",
    "ConfigurationError",
]
