"""Memoized traversal of a transformer tree over one input.

``transform`` is the single entry point. Each call owns a private
``Traversal``: a cache from (transformer, input) to result, the settings in
force and some statistics. Transformers run their children through the
traversal handle they receive, so every (transformer, input) pair is
evaluated at most once per call and its result is tagged with the
transformer that produced it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .config import EngineSettings, get_settings
from .exceptions import ResultInvariantError
from .result import Failure, Invalid, Result, Valid

logger = logging.getLogger(__name__)

TransformFn = Callable[[Any, "Traversal"], Result[Any]]

# Immutable scalars have no useful identity in Python; they are memoized by value.
_SCALAR_TYPES = (type(None), bool, int, float, complex, str, bytes)


def _input_key(value: Any) -> Any:
    if type(value) in _SCALAR_TYPES:
        return (type(value), value)
    return id(value)


def describe(transformer: Any) -> str:
    """Return a short human-readable name for a transformer."""
    if hasattr(transformer, "__qualname__"):
        return transformer.__qualname__
    return repr(transformer)


@dataclass
class TraversalStats:
    """Counters collected during one traversal."""

    invocations: int = 0
    cache_hits: int = 0
    max_depth: int = 0


class Traversal:
    """State of a single ``transform`` call.

    Calling the traversal with ``(value, transformer)`` runs the transformer
    on the value, or returns the memoized result if this pair was already
    evaluated during the call. The cache keeps the transformer and input
    alive until the traversal is dropped, so their identities stay unique.

    Each evaluated result is also recorded against the transformer that
    returned it. A combinator that passes a child's result through becomes
    its producer. The association belongs to this traversal only and is
    read back with ``producer_of``.
    """

    def __init__(self, settings: EngineSettings | None = None):
        self.settings = settings or get_settings()
        self.stats = TraversalStats()
        self._cache: Dict[Tuple[int, Any], Tuple[TransformFn, Any, Result[Any]]] = {}
        self._producers: Dict[int, Tuple[Result[Any], TransformFn]] = {}
        self._depth = 0

    def __call__(self, value: Any, transformer: TransformFn) -> Result[Any]:
        key = (id(transformer), _input_key(value))
        entry = self._cache.get(key)
        if entry is not None:
            self.stats.cache_hits += 1
            return entry[2]

        self.stats.invocations += 1
        self._depth += 1
        self.stats.max_depth = max(self.stats.max_depth, self._depth)
        try:
            result = transformer(value, self)
        finally:
            self._depth -= 1

        if not isinstance(result, (Valid, Invalid, Failure)):
            raise ResultInvariantError(
                f"Transformer {describe(transformer)} returned "
                f"{type(result).__name__}, expected a result",
                context={"transformer": describe(transformer)},
            )

        self._producers[id(result)] = (result, transformer)
        self._cache[key] = (transformer, value, result)

        if self.settings.trace:
            logger.debug(
                f"{'  ' * self._depth}{describe(transformer)} -> {result.kind.value}"
            )
        return result

    def producer_of(self, result: Result[Any]) -> TransformFn | None:
        """Return the transformer that last produced ``result`` in this traversal.

        Returns:
            The producing transformer, or None for results this traversal
            never returned
        """
        entry = self._producers.get(id(result))
        if entry is None or entry[0] is not result:
            return None
        return entry[1]

    def __len__(self) -> int:
        return len(self._cache)


def transform(
    value: Any,
    transformer: TransformFn,
    settings: EngineSettings | None = None,
) -> Result[Any]:
    """Run a transformer tree over an input value.

    Args:
        value: The input; never modified
        transformer: Root of the transformer tree
        settings: Engine settings; the process-wide settings when omitted

    Returns:
        The result of the root transformer
    """
    traversal = Traversal(settings)
    result = traversal(value, transformer)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            f"Transformed input with {describe(transformer)}: {result.kind.value}, "
            f"{traversal.stats.invocations} invocations, "
            f"{traversal.stats.cache_hits} cache hits, "
            f"max depth {traversal.stats.max_depth}"
        )
    return result


__all__ = [
    "TransformFn",
    "Traversal",
    "TraversalStats",
    "describe",
    "transform",
]
