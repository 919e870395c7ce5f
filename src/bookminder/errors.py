"""Exceptions raised by the bookmark engine.

Callers can tell the failure kinds apart without parsing messages:

  ValidationError  missing or malformed request fields; never retried
  NotFoundError    unknown bookmark or project id
  ConflictError    a project name that is already taken
  StoreError       the database failed; the message never carries driver detail
  DecodeError      malformed tag/property text (returned by the codec, not raised
                   by the repository)
"""

from __future__ import annotations


class BookminderError(Exception):
    """Base class for all engine errors."""


class ValidationError(BookminderError, ValueError):
    """Raised when a request is missing required fields or has invalid values.

    Attributes:
        fields: Names of the offending request fields.
    """

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        self.fields = list(fields or [])
        super().__init__(message)

    @classmethod
    def missing(cls, *fields: str) -> ValidationError:
        names = ", ".join(fields)
        noun = "field" if len(fields) == 1 else "fields"
        return cls(f"Missing required {noun}: {names}", list(fields))


class NotFoundError(BookminderError, LookupError):
    """Raised when a bookmark or project does not exist."""

    def __init__(self, kind: str, key: object) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class ConflictError(BookminderError):
    """Raised when a project name is already in use."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"project name already exists: {name}")


class StoreError(BookminderError):
    """Raised when a statement against the store fails.

    The message names the operation only. The underlying driver error is
    chained as ``__cause__`` and logged where it was caught.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} failed")


class DecodeError(BookminderError, ValueError):
    """Malformed encoded tags or custom properties."""
