"""knobshape: composable validation and transformation of nested plain data.

Declare a tree of transformers, run it once over an input with
``transform``, and get back a Valid, Invalid or Failure result. Transformers
wrapped with ``capture`` record their input and output so they can be looked
up on the final result by key.

Example:
    ```python
    from knobshape import capture, create_capture_key, transform
    from knobshape.shapes import constant, instance, object_shape

    version = create_capture_key("version")
    schema = object_shape({
        "name": instance(str),
        "version": capture(version, constant(2)),
    })

    result = transform({"name": "demo", "version": 2}, schema)
    result.value                                  # {'name': 'demo', 'version': 2}
    result.get_canonical(version).output.value    # 2
    ```
"""

from knobshape.captures import (
    Capture,
    CaptureKey,
    CaptureSet,
    create_capture_key,
    cross_product,
)
from knobshape.combinators import (
    AllOf,
    AnyOf,
    Captured,
    Chain,
    Transformer,
    capture,
    chain,
    intersection,
    merge_results,
    union,
)
from knobshape.config import (
    EngineSettings,
    configure,
    get_settings,
    load_settings,
    reset_settings,
)
from knobshape.engine import TransformFn, Traversal, TraversalStats, transform
from knobshape.exceptions import (
    CompositionError,
    ConfigurationError,
    KnobshapeError,
    ResultInvariantError,
)
from knobshape.result import (
    Failure,
    Invalid,
    Result,
    ResultKind,
    Valid,
    failure,
    invalid,
    is_failure,
    is_invalid,
    is_valid,
    valid,
)
from knobshape.shapes import (
    array_collection,
    array_shape,
    constant,
    instance,
    object_collection,
    object_shape,
    predicate,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Results
    "Result",
    "ResultKind",
    "Valid",
    "Invalid",
    "Failure",
    "valid",
    "invalid",
    "failure",
    "is_valid",
    "is_invalid",
    "is_failure",
    # Captures
    "Capture",
    "CaptureKey",
    "CaptureSet",
    "create_capture_key",
    "cross_product",
    # Engine
    "transform",
    "Traversal",
    "TraversalStats",
    "TransformFn",
    # Combinators
    "Transformer",
    "Chain",
    "AnyOf",
    "AllOf",
    "Captured",
    "chain",
    "union",
    "intersection",
    "capture",
    "merge_results",
    # Shapes
    "constant",
    "instance",
    "object_shape",
    "object_collection",
    "array_shape",
    "array_collection",
    "predicate",
    # Settings
    "EngineSettings",
    "load_settings",
    "get_settings",
    "configure",
    "reset_settings",
    # Exceptions
    "KnobshapeError",
    "CompositionError",
    "ResultInvariantError",
    "ConfigurationError",
]
