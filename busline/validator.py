"""
Validator base class.

Subclasses declare their rules in ``build_rules`` with ``rule_for``. Each
``validate`` call binds the instance and a fresh error list in a context
variable, so one validator object can be shared by concurrent tasks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Callable, Generic, Iterator, TypeVar

from .exceptions import ValidationFailure
from .rules import RuleChain
from .types import Err, ErrorRecords, Ok

T = TypeVar("T")
P = TypeVar("P")


@dataclass(slots=True)
class _Frame:
    validator: Validator[Any]
    instance: Any
    errors: ErrorRecords = field(default_factory=list)


# Stack of active validate() calls for the current task
_frames: ContextVar[tuple[_Frame, ...]] = ContextVar("validation_frames", default=())


@contextmanager
def _bind(validator: Validator[Any], instance: Any) -> Iterator[_Frame]:
    frame = _Frame(validator, instance)
    token = _frames.set((*_frames.get(), frame))
    try:
        yield frame
    finally:
        _frames.reset(token)


class Validator(ABC, Generic[T]):
    """
    Base class for validators of one subject type.

    Example:
        class AddressValidator(Validator[Address]):
            def build_rules(self):
                self.rule_for(lambda a: a.city, "city") \\
                    .not_empty().with_message("City must not be empty")

        class ProfileValidator(Validator[Profile]):
            def build_rules(self):
                self.rule_for(lambda p: p.name, "name").not_empty()
                self.rule_for(lambda p: p.address, "address").nested(AddressValidator())

        try:
            ProfileValidator().validate(profile)
        except ValidationFailure as e:
            print(e.by_field())
    """

    @abstractmethod
    def build_rules(self) -> None:
        """Declare the rules with ``rule_for``. Runs once per ``validate`` call."""

    def validate(self, instance: T) -> None:
        """
        Run every rule against ``instance``.

        Raises:
            ValidationFailure: with all collected ErrorRecords, if any rule failed
        """
        with _bind(self, instance) as frame:
            self.build_rules()
        if frame.errors:
            raise ValidationFailure(frame.errors)

    def check(self, instance: T) -> Ok[T] | Err:
        """
        Result-returning variant of ``validate``.

        Returns:
            Ok(instance) if every rule passed
            Err((ErrorRecord, ...)) otherwise
        """
        try:
            self.validate(instance)
        except ValidationFailure as failure:
            return Err(tuple(failure.errors))
        return Ok(instance)

    def is_valid(self, instance: T) -> bool:
        return bool(self.check(instance))

    @property
    def instance(self) -> T:
        """The instance bound by the ``validate`` call currently running."""
        return self._frame().instance

    def rule_for(self, extractor: Callable[[T], P] | str, field: str) -> RuleChain[T, P]:
        """
        Start a rule chain for one field of the bound instance.

        Args:
            extractor: Function pulling the value out of the instance, or an
                attribute name
            field: Name used in error records

        Returns:
            A RuleChain sharing this call's error list
        """
        frame = self._frame()
        getter = attrgetter(extractor) if isinstance(extractor, str) else extractor
        return RuleChain(field, getter(frame.instance), frame.errors)

    def _frame(self) -> _Frame:
        for frame in reversed(_frames.get()):
            if frame.validator is self:
                return frame
        raise RuntimeError(
            f"{type(self).__name__} has no bound instance; rules only run inside validate()"
        )
