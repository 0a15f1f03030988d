"""Engine settings and how they are loaded.

Settings can come from a dictionary, a YAML or JSON file, and environment
variables, in that order of precedence (environment wins):

    KNOBSHAPE_TRACE=true
    KNOBSHAPE_STRICT_COMPOSITION=false

A settings file may hold the values at the top level or under a
``knobshape`` section:

    ```yaml
    knobshape:
      trace: true
      strict_composition: false
    ```
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml  # type: ignore[import-untyped]

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "KNOBSHAPE_"
SECTION = "knobshape"


@dataclass(frozen=True)
class EngineSettings:
    """Settings consulted by the traversal engine and the combinators.

    Attributes:
        trace: Log every transformer invocation at DEBUG level
        strict_composition: Reject empty ``union`` and ``intersection`` when
            they are built. When False, an empty union yields a sentinel
            Failure at run time and an empty intersection accepts its input.
    """

    trace: bool = False
    strict_composition: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EngineSettings:
        """Create settings from a dictionary.

        Unknown keys are logged and ignored.

        Args:
            data: Settings values, optionally nested under a ``knobshape`` key

        Returns:
            EngineSettings instance

        Raises:
            ConfigurationError: If a value has the wrong type
        """
        if isinstance(data.get(SECTION), dict):
            data = data[SECTION]

        known = {f.name: f for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown setting: {key}")
                continue
            if not isinstance(value, bool):
                raise ConfigurationError(
                    f"Setting '{key}' must be a boolean, got {type(value).__name__}",
                    context={"setting": key, "value": value},
                )
            values[key] = value
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _parse_value(value: str) -> Any:
    """Parse an environment variable value to a boolean where possible."""
    if value.lower() in ["true", "yes", "1"]:
        return True
    elif value.lower() in ["false", "no", "0"]:
        return False
    return value


def environment_overrides(prefix: str = ENV_PREFIX) -> Dict[str, Any]:
    """Collect setting overrides from environment variables.

    Args:
        prefix: Environment variable prefix

    Returns:
        Dictionary of setting names to parsed values
    """
    known = {f.name for f in fields(EngineSettings)}
    overrides = {}
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        name = key[len(prefix) :].lower()
        if name in known:
            overrides[name] = _parse_value(value)
    return overrides


def _load_file(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path).resolve()

    if not path.exists():
        raise ConfigurationError(
            f"Settings file not found: {path}", context={"path": str(path)}
        )

    suffix = path.suffix.lower()
    with open(path) as f:
        if suffix in [".yaml", ".yml"]:
            data = yaml.safe_load(f)
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise ConfigurationError(
                f"Unsupported settings file format: {suffix}", context={"path": str(path)}
            )

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Settings file must contain a mapping, got {type(data).__name__}",
            context={"path": str(path)},
        )
    return data


def load_settings(
    source: Union[str, Path, Dict[str, Any], None] = None,
    use_env: bool = True,
) -> EngineSettings:
    """Load engine settings from a source plus environment overrides.

    Args:
        source: Settings dictionary, path to a YAML/JSON file, or None
        use_env: Apply ``KNOBSHAPE_*`` environment variables on top

    Returns:
        EngineSettings instance
    """
    if source is None:
        data: Dict[str, Any] = {}
    elif isinstance(source, dict):
        data = dict(source)
    elif isinstance(source, (str, Path)):
        logger.info(f"Loading settings from {source}")
        data = _load_file(source)
    else:
        raise ConfigurationError(f"Invalid settings source type: {type(source)}")

    if isinstance(data.get(SECTION), dict):
        data = dict(data[SECTION])

    if use_env:
        data.update(environment_overrides())

    return EngineSettings.from_dict(data)


_settings: EngineSettings | None = None


def get_settings() -> EngineSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def configure(settings: EngineSettings) -> None:
    """Replace the process-wide settings."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Forget the process-wide settings so the next access reloads them."""
    global _settings
    _settings = None


__all__ = [
    "EngineSettings",
    "configure",
    "environment_overrides",
    "get_settings",
    "load_settings",
    "reset_settings",
]
