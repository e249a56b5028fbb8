"""
formbind Configuration
======================

Library settings, read from `FORMBIND_*` environment variables.

Loading priority (highest to lowest):
1. Runtime overrides passed to `configure()`
2. Environment variables (FORMBIND_*)
3. .env file
4. Default values

Example:
    settings = get_settings()
    settings.tag_key  # "binding"

    configure(tag_key="validate", name_keys=("json",))
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional, Tuple

from formbind.utils.env import Env
from formbind.utils.logger import LogLevel, configure_logging

ENV_PREFIX = "FORMBIND_"


@dataclass(frozen=True)
class Settings:
    """
    Validation settings.

    Attributes:
        tag_key: Field metadata key holding the rule directive
        name_keys: Metadata keys searched, in order, for a field's reported name
        log_level: Minimum level for formbind loggers
        log_format: "text" or "json"
        payload_key: Request state key holding the decoded payload
        errors_key: Request state key receiving the validation errors
    """

    tag_key: str = "binding"
    name_keys: Tuple[str, ...] = ("form", "json")
    log_level: str = "WARNING"
    log_format: str = "text"
    payload_key: str = "payload"
    errors_key: str = "binding_errors"

    def __post_init__(self) -> None:
        # Fail early on values configure_logging would reject
        LogLevel.parse(self.log_level)
        if self.log_format not in ("text", "json"):
            raise ValueError(f"Unknown log format '{self.log_format}'")
        if not self.tag_key:
            raise ValueError("tag_key must not be empty")
        if not isinstance(self.name_keys, tuple):
            object.__setattr__(self, "name_keys", tuple(self.name_keys))

    @classmethod
    def from_env(cls, env: Optional[Env] = None) -> "Settings":
        """
        Build settings from the environment.

        Args:
            env: Environment reader (FORMBIND_ prefixed, .env loaded)

        Returns:
            Settings instance
        """
        env = env or Env(prefix=ENV_PREFIX).load()
        defaults = cls()

        return cls(
            tag_key=env.str("TAG_KEY", defaults.tag_key),
            name_keys=tuple(env.list("NAME_KEYS", list(defaults.name_keys))),
            log_level=env.str("LOG_LEVEL", defaults.log_level),
            log_format=env.str("LOG_FORMAT", defaults.log_format),
            payload_key=env.str("PAYLOAD_KEY", defaults.payload_key),
            errors_key=env.str("ERRORS_KEY", defaults.errors_key),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get process-wide settings, loading them on first use."""
    global _settings

    if _settings is None:
        _settings = Settings.from_env()
        configure_logging(_settings.log_level, _settings.log_format)

    return _settings


def configure(settings: Optional[Settings] = None, **overrides: Any) -> Settings:
    """
    Replace process-wide settings.

    Clears the schema cache, since schemas depend on `tag_key` and
    `name_keys`.

    Args:
        settings: Complete settings to install (current ones if omitted)
        **overrides: Individual fields to change

    Returns:
        The installed settings
    """
    global _settings

    base = settings or get_settings()
    _settings = replace(base, **overrides) if overrides else base
    configure_logging(_settings.log_level, _settings.log_format)

    from formbind.schema import clear_schema_cache
    clear_schema_cache()

    return _settings


def reset_settings() -> None:
    """Forget loaded settings; the next `get_settings()` reloads them."""
    global _settings
    _settings = None

    from formbind.schema import clear_schema_cache
    clear_schema_cache()
