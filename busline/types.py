"""
Type definitions for busline validation.

Provides the ErrorRecord value and the Ok/Err outcome of a non-raising check.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """One failed check: the field it belongs to and a human-readable message."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A passing check. ``value`` is the instance that was validated."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    """A failing check, holding every record in the order the rules ran."""

    errors: tuple[ErrorRecord, ...]

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def __bool__(self) -> bool:
        return False

    @property
    def fields(self) -> list[str]:
        """Distinct failing field paths, first occurrence first."""
        return list(dict.fromkeys(record.field for record in self.errors))


ErrorRecords = list[ErrorRecord]
