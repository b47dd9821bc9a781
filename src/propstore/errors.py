"""Exception types raised by propstore."""

from __future__ import annotations


class PropstoreError(Exception):
    """Base class for all propstore errors."""


class LoadError(PropstoreError):
    """Loading configuration from a source failed.

    Raised from the triggering cause (``raise LoadError(...) from exc``), so the
    original I/O or parse failure stays reachable through ``__cause__``.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source

    def __str__(self) -> str:
        message = super().__str__()
        if self.source:
            return f"{message} (source: {self.source})"
        return message


class PropertiesSyntaxError(PropstoreError, ValueError):
    """A properties document could not be parsed."""

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message)
        self.line = line

    def __str__(self) -> str:
        message = super().__str__()
        if self.line is not None:
            return f"line {self.line}: {message}"
        return message


class DescriptorError(PropstoreError, ValueError):
    """A config type descriptor is invalid."""
