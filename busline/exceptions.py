"""
Exception hierarchy for busline.
"""

from __future__ import annotations

from typing import Iterable

from .types import ErrorRecord


class BuslineError(Exception):
    """Base class for every error raised by busline itself."""


class ValidationFailure(BuslineError):
    """
    Raised when a validator rejects an instance.

    Carries every ErrorRecord produced during one ``validate`` call, in the
    order the rules ran.

    Example:
        try:
            UserValidator().validate(user)
        except ValidationFailure as e:
            for error in e.errors:
                print(f"{error.field}: {error.message}")
    """

    def __init__(self, errors: Iterable[ErrorRecord]):
        self.errors: list[ErrorRecord] = list(errors)
        super().__init__(self.errors)

    @property
    def fields(self) -> list[str]:
        """Failing field names, first occurrence order, without duplicates."""
        return list(dict.fromkeys(e.field for e in self.errors))

    def by_field(self) -> dict[str, list[str]]:
        """Group messages under the field they belong to."""
        grouped: dict[str, list[str]] = {}
        for error in self.errors:
            grouped.setdefault(error.field, []).append(error.message)
        return grouped

    def __str__(self) -> str:
        return "\n".join(str(e) for e in self.errors)

    def __repr__(self) -> str:
        return f"ValidationFailure({self.errors!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ValidationFailure):
            return self.errors == other.errors
        return NotImplemented

    __hash__ = BuslineError.__hash__


class HandlerNotFound(BuslineError, LookupError):
    """Raised by the dispatcher when no handler is registered for a request type."""

    def __init__(self, request_type: type):
        self.request_type = request_type
        super().__init__(request_type)

    def __str__(self) -> str:
        return f"No handler registered for {self.request_type.__name__}"


class RegistrationError(BuslineError):
    """Raised when a handler cannot be registered (bad binding or frozen registry)."""
