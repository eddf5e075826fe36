"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when configuration values are invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank.

    Rate providers raise this when their API key is unset; the application
    skips such providers instead of failing.
    """


class InvalidConfigurationValueError(ConfigurationError):
    """Raised when an environment variable is set but cannot be used."""

    def __init__(self, name: str, raw: str, expected: str) -> None:
        super().__init__(f"{name} must be {expected}, got {raw!r}")
        self.name = name
        self.raw = raw
        self.expected = expected
