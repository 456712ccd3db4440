"""Heartbeat configuration.

The only recognized option is ``interval``: the period in milliseconds
between an acknowledged checkup and the next one.

Options can be passed inline to ``healthchecked()`` or loaded from YAML:

    heartbeat:
      interval: 5000
"""

from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from healthchecked.errors import InvalidConfig

DEFAULT_INTERVAL_MS = 2000


class HeartbeatConfig(BaseModel):
    """Validated heartbeat options."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    interval: int = Field(default=DEFAULT_INTERVAL_MS, gt=0)

    @classmethod
    def from_options(
        cls,
        options: "HeartbeatConfig | Mapping[str, Any] | None" = None,
    ) -> "HeartbeatConfig":
        """Build a config from user options, raising InvalidConfig on bad input."""
        if options is None:
            return cls()
        if isinstance(options, HeartbeatConfig):
            return options
        if not isinstance(options, Mapping):
            raise InvalidConfig(
                f"options must be a mapping, got {type(options).__name__}"
            )
        try:
            return cls.model_validate(dict(options))
        except ValidationError as e:
            raise InvalidConfig(_describe(e)) from e


def load_config(path: Path | str) -> HeartbeatConfig:
    """Load heartbeat options from a YAML file.

    Options may sit at the top level or under a ``heartbeat`` key.
    A missing file yields the defaults.
    """
    config_path = Path(path)
    if not config_path.exists():
        return HeartbeatConfig()

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise InvalidConfig(f"malformed config file {config_path}: {e}") from e

    if not isinstance(data, Mapping):
        raise InvalidConfig(f"config file {config_path} must contain a mapping")

    section = data.get("heartbeat", data)
    if section is None:
        return HeartbeatConfig()
    return HeartbeatConfig.from_options(section)


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "options"
        parts.append(f"{loc}: {err['msg']}")
    return "invalid heartbeat options: " + "; ".join(parts)
