"""Engine configuration.

EngineConfig holds per-engine settings: how the default error reporter
formats failure lines, how the built-in fetch action talks HTTP, and
whether runs on the same file are serialized.
"""

from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field

from tagflow._version import __version__

_ENV_PREFIX = "TAGFLOW_"

# env var suffix -> field name
_ENV_FIELDS: dict[str, str] = {
    "FETCH_TIMEOUT": "fetch_timeout",
    "FETCH_MAX_ATTEMPTS": "fetch_max_attempts",
    "FETCH_BACKOFF": "fetch_backoff",
    "USER_AGENT": "user_agent",
    "SERIALIZE_FILE_RUNS": "serialize_file_runs",
}


class EngineConfig(BaseModel):
    """Per-engine configuration."""

    indent_unit: str = "  "
    task_error_bullet: str = "*"
    editor_error_bullet: str = "*"
    timestamp_format: str = "%Y-%m-%d %H:%M:%S"

    fetch_timeout: float = Field(default=30.0, gt=0)
    fetch_max_attempts: int = Field(default=1, ge=1)  # 1 = no retry
    fetch_backoff: float = Field(default=1.0, ge=0)
    user_agent: str = f"tagflow/{__version__}"

    serialize_file_runs: bool = False

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None, **overrides) -> EngineConfig:
        """Build a config from ``TAGFLOW_*`` environment variables.

        Explicit keyword overrides win over the environment.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for suffix, field_name in _ENV_FIELDS.items():
            raw = env.get(_ENV_PREFIX + suffix)
            if raw is not None and raw != "":
                values[field_name] = raw
        values.update(overrides)
        return cls.model_validate(values)
