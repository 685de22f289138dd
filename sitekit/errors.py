"""Exception types raised by sitekit."""

from __future__ import annotations


class SitekitError(Exception):
    """Base class for sitekit failures."""


class ConfigError(SitekitError):
    """Raised when a configuration file cannot be loaded or validated."""


class MinifyError(SitekitError):
    """Raised when a minifier rejects a source file."""

    def __init__(self, filename: str, message: str) -> None:
        super().__init__(f"Error minifying {filename}: {message}")
        self.filename = filename


class StageError(SitekitError):
    """Raised when the build cannot prepare the output for its stages."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage} stage failed: {message}")
        self.stage = stage


class ValidationServiceError(SitekitError):
    """Raised when the CSS validation service returns an unusable response."""


class AuditError(SitekitError):
    """Raised when the accessibility engine cannot run against a page."""


__all__ = [
    "AuditError",
    "ConfigError",
    "MinifyError",
    "SitekitError",
    "StageError",
    "ValidationServiceError",
]
