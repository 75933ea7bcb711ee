"""Harness error hierarchy.

Two tiers matter at runtime: :class:`HarnessSetupError` aborts the run
when suite-start fixtures cannot be written, while per-scenario capture
problems are logged and never raised.
"""

from __future__ import annotations


class HarnessError(Exception):
    """Base class for all harness errors."""


class SettingsError(HarnessError, ValueError):
    """Raised when harness configuration is invalid."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = tuple(errors)
        super().__init__('; '.join(errors))


class HarnessSetupError(HarnessError):
    """Fatal suite-setup failure (results dir, metadata or fixture files)."""

    def __init__(self, step: str, message: str) -> None:
        self.step = step
        super().__init__(f'{step}: {message}')


class BrowserNotAvailableError(HarnessError, RuntimeError):
    """Raised when a step asks for a page in a non-browser scenario."""


class ResponseValidationError(HarnessError, AssertionError):
    """Raised when an API response does not carry the expected fields."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(f'Response missing required fields: {", ".join(missing)}')


class DataFileError(HarnessError):
    """Raised when a test data file cannot be read or parsed."""
