"""
busline - in-process request dispatch with fluent validation.

Usage:
    from busline import Dispatcher, Handler, Request, Validator

    class PasswordValidator(Validator[PasswordRequest]):
        def build_rules(self):
            self.rule_for(lambda r: r.password, "password") \\
                .min_length(6).with_message("Password must be at least 6 characters")

    bus = Dispatcher()
    bus.register(PasswordHandler())
    result = await bus.send(PasswordRequest("secret123", "secret123"))
"""

from .dispatcher import Dispatcher
from .exceptions import (
    BuslineError,
    HandlerNotFound,
    RegistrationError,
    ValidationFailure,
)
from .handler import Handler
from .logging import configure_logging
from .request import Request
from .rules import RuleChain
from .settings import BuslineSettings
from .types import Err, ErrorRecord, Ok
from .validator import Validator

__all__ = [
    # Dispatch
    "Dispatcher",
    "Handler",
    "Request",
    # Validation
    "Validator",
    "RuleChain",
    "ErrorRecord",
    # Result types
    "Ok",
    "Err",
    # Errors
    "BuslineError",
    "ValidationFailure",
    "HandlerNotFound",
    "RegistrationError",
    # Config
    "BuslineSettings",
    "configure_logging",
]
