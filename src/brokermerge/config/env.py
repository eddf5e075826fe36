"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import InvalidConfigurationValueError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = os.getenv(name)
        if value is None or not value.strip():
            missing.append(name)
            continue
        values[name] = value.strip()

    if missing:
        missing_list = ", ".join(sorted(missing))
        raise MissingConfigurationError(f"Missing configuration for: {missing_list}")

    return values


def require_env_var(name: str) -> str:
    """Return a required environment variable by name."""

    return require_env_vars([name])[name]


def optional_env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def optional_env_float(name: str, default: float) -> float:
    """Return a positive float from the environment, or ``default`` when unset."""

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise InvalidConfigurationValueError(name, raw, "a number") from exc
    if value <= 0:
        raise InvalidConfigurationValueError(name, raw, "positive")
    return value


def optional_env_currency(name: str, default: str) -> str:
    """Return an ISO 4217 style code (three letters, uppercased) from the environment."""

    raw = optional_env_str(name, default)
    code = raw.upper()
    if len(code) != 3 or not code.isalpha():
        raise InvalidConfigurationValueError(name, raw, "a three-letter currency code")
    return code
