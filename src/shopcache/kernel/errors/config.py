"""Configuration errors – raised while building settings from the environment."""

from __future__ import annotations

from typing import Any

from shopcache.kernel.errors.base import BaseError


class ConfigError(BaseError):
    """Settings could not be built from their source."""

    default_code = "config_error"


class MissingRequiredSettingError(ConfigError):
    """A settings field without a default has no environment variable."""

    default_code = "config_setting_missing"

    def __init__(self, setting_name: str, **kwargs: Any) -> None:
        super().__init__(
            f"'{setting_name}' is not set and has no default",
            detail={"setting": setting_name},
            **kwargs,
        )
        self.setting_name = setting_name


class InvalidSettingValueError(ConfigError):
    """A setting is present but unusable, either unparseable or out of range.

    ``setting_name`` is the field name when a settings object rejects its own
    value, and the environment variable name when the raw string could not be
    parsed.
    """

    default_code = "config_setting_invalid"

    def __init__(self, setting_name: str, value: object, reason: str, **kwargs: Any) -> None:
        super().__init__(
            f"'{setting_name}' {reason} (got {value!r})",
            detail={"setting": setting_name, "value": value, "reason": reason},
            **kwargs,
        )
        self.setting_name = setting_name
        self.value = value
        self.reason = reason


__all__ = ["ConfigError", "InvalidSettingValueError", "MissingRequiredSettingError"]
