"""
Fluent rule chains for validating one field of one instance.

A chain is created by ``Validator.rule_for`` and lives for a single
``validate`` call. Every check appends at most one ErrorRecord to the list
shared by all chains of that call, so failures from every field end up in one
aggregate error.

Usage:
    class UserValidator(Validator[User]):
        def build_rules(self):
            self.rule_for(lambda u: u.email, "email") \\
                .not_empty().with_message("Email is required") \\
                .email_address().with_message("Email is invalid")

            self.rule_for(lambda u: u.address, "address").nested(AddressValidator())
"""

from __future__ import annotations

import re
from collections.abc import Sized
from typing import TYPE_CHECKING, Any, Callable, Collection, Generic, TypeVar

from .exceptions import ValidationFailure
from .types import ErrorRecord, ErrorRecords

if TYPE_CHECKING:
    from .validator import Validator

T = TypeVar("T")
P = TypeVar("P")

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class RuleChain(Generic[T, P]):
    """
    Chain of checks over a single extracted field value.

    State is either "no pending failure" or "pending failure" pointing at the
    record the most recent check appended. ``with_message`` only rewrites a
    pending failure, so it applies to the immediately preceding check and
    nothing earlier.
    """

    __slots__ = ("field", "value", "errors", "_last_failure")

    def __init__(self, field: str, value: P, errors: ErrorRecords):
        self.field = field
        self.value = value
        self.errors = errors
        self._last_failure: ErrorRecord | None = None

    @property
    def last_failure(self) -> ErrorRecord | None:
        """The record appended by the previous check, if it failed."""
        return self._last_failure

    def _record(self, passed: bool, message: str) -> RuleChain[T, P]:
        if passed:
            self._last_failure = None
        else:
            self._last_failure = ErrorRecord(self.field, message)
            self.errors.append(self._last_failure)
        return self

    # Presence

    def required(self) -> RuleChain[T, P]:
        """Value must not be None."""
        return self._record(self.value is not None, f"{self.field} must not be null")

    not_null = required

    def not_empty(self) -> RuleChain[T, P]:
        """Value must be present; strings must not be blank, containers not empty."""
        value: Any = self.value
        if value is None:
            passed = False
        elif isinstance(value, str):
            passed = bool(value.strip())
        elif isinstance(value, Sized):
            passed = len(value) > 0
        else:
            passed = True
        return self._record(passed, f"{self.field} must not be empty")

    # Strings

    def min_length(self, length: int) -> RuleChain[T, P]:
        value: Any = self.value
        passed = not isinstance(value, str) or len(value) >= length
        return self._record(passed, f"{self.field} must be at least {length} characters")

    def max_length(self, length: int) -> RuleChain[T, P]:
        value: Any = self.value
        passed = not isinstance(value, str) or len(value) <= length
        return self._record(passed, f"{self.field} must be at most {length} characters")

    def length(self, lower: int, upper: int) -> RuleChain[T, P]:
        """String length within ``lower``..``upper`` inclusive."""
        value: Any = self.value
        passed = not isinstance(value, str) or lower <= len(value) <= upper
        return self._record(
            passed, f"{self.field} must be between {lower} and {upper} characters"
        )

    def matches(self, pattern: str | re.Pattern[str]) -> RuleChain[T, P]:
        """String must contain a match for ``pattern`` (``re.search`` semantics)."""
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        value: Any = self.value
        passed = not isinstance(value, str) or compiled.search(value) is not None
        return self._record(passed, f"{self.field} does not match pattern")

    matches_pattern = matches

    def email_address(self) -> RuleChain[T, P]:
        value: Any = self.value
        passed = not isinstance(value, str) or EMAIL_PATTERN.match(value) is not None
        return self._record(passed, f"{self.field} is not a valid email")

    # Equality and membership

    def must_match(self, other: Any) -> RuleChain[T, P]:
        """Value must equal ``other`` (e.g. a password confirmation)."""
        return self._record(
            self.value == other, f"{self.field} does not match the required value"
        )

    equals_value = must_match

    def is_in(self, allowed: Collection[Any]) -> RuleChain[T, P]:
        try:
            passed = self.value in allowed
        except TypeError:
            # unhashable value against a set
            passed = False
        return self._record(passed, f"{self.field} is not an allowed value")

    one_of = is_in

    def must(
        self, predicate: Callable[[Any], bool], message: str | None = None
    ) -> RuleChain[T, P]:
        """
        Value must satisfy an arbitrary predicate.

        A predicate raising TypeError or ValueError counts as a failure.
        """
        try:
            passed = bool(predicate(self.value))
        except (TypeError, ValueError):
            passed = False
        return self._record(passed, message or f"{self.field} is not valid")

    # Ordering

    def _compare(self, op: Callable[[Any], bool], message: str) -> RuleChain[T, P]:
        if self.value is None:
            return self._record(True, message)
        try:
            passed = bool(op(self.value))
        except TypeError:
            passed = True
        return self._record(passed, message)

    def greater_than(self, bound: Any) -> RuleChain[T, P]:
        return self._compare(lambda x: x > bound, f"{self.field} must be greater than {bound}")

    def greater_than_or_equal(self, bound: Any) -> RuleChain[T, P]:
        return self._compare(
            lambda x: x >= bound, f"{self.field} must be at least {bound}"
        )

    def less_than(self, bound: Any) -> RuleChain[T, P]:
        return self._compare(lambda x: x < bound, f"{self.field} must be less than {bound}")

    def less_than_or_equal(self, bound: Any) -> RuleChain[T, P]:
        return self._compare(
            lambda x: x <= bound, f"{self.field} must be at most {bound}"
        )

    def between(self, lower: Any, upper: Any, inclusive: bool = True) -> RuleChain[T, P]:
        if inclusive:
            return self._compare(
                lambda x: lower <= x <= upper,
                f"{self.field} must be between {lower} and {upper}",
            )
        return self._compare(
            lambda x: lower < x < upper,
            f"{self.field} must be between {lower} and {upper} (exclusive)",
        )

    # Messages

    def with_message(self, message: str) -> RuleChain[T, P]:
        """
        Override the message of the previous check if it failed.

        Must be called immediately after the check it targets. The record is
        located by identity, so an identical record appended by another rule
        is never rewritten by mistake.
        """
        pending = self._last_failure
        if pending is None:
            return self
        for index in range(len(self.errors) - 1, -1, -1):
            if self.errors[index] is pending:
                replacement = ErrorRecord(pending.field, message)
                self.errors[index] = replacement
                self._last_failure = replacement
                break
        return self

    # Nesting

    def nested(self, validator: Validator[P]) -> RuleChain[T, P]:
        """
        Validate the value with another validator.

        Child errors are re-keyed under this field (``address.city``) and
        merged into the parent's errors. None values are skipped.
        """
        self._last_failure = None
        if self.value is None:
            return self
        self._merge(validator, self.value, self.field)
        return self

    def each(self, validator: Validator[Any]) -> RuleChain[T, P]:
        """Validate every item of a list or tuple, keyed as ``items[0].name``."""
        self._last_failure = None
        value: Any = self.value
        if not isinstance(value, (list, tuple)):
            return self
        for index, item in enumerate(value):
            self._merge(validator, item, f"{self.field}[{index}]")
        return self

    def _merge(self, validator: Validator[Any], value: Any, prefix: str) -> None:
        try:
            validator.validate(value)
        except ValidationFailure as failure:
            self.errors.extend(
                ErrorRecord(f"{prefix}.{e.field}", e.message) for e in failure.errors
            )

    def __repr__(self) -> str:
        return f"RuleChain(field={self.field!r}, value={self.value!r})"
