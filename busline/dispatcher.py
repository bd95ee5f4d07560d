"""
Dispatcher: routes request instances to the handler registered for their type.

Registration normally happens once at startup, before requests are sent.
Set ``BuslineSettings(thread_safe_registry=True)`` when handlers may be
registered while other threads dispatch, or call ``freeze()`` once setup is
done to reject late registrations.
"""

from __future__ import annotations

import logging
import threading
from contextlib import nullcontext
from typing import Any, ContextManager, TypeVar

from .exceptions import HandlerNotFound, RegistrationError, ValidationFailure
from .handler import Handler
from .logging import get_logger
from .request import Request
from .settings import BuslineSettings

TResponse = TypeVar("TResponse")

log = get_logger("dispatcher")


class Dispatcher:
    """
    Type-keyed registry of handlers.

    Example:
        bus = Dispatcher()
        bus.register(LoginHandler())

        response = await bus.send(LoginRequest("user@example.com", "password123"))
    """

    def __init__(self, settings: BuslineSettings | None = None):
        self.settings = settings or BuslineSettings()
        self._handlers: dict[type, Handler[Any, Any]] = {}
        self._frozen = False
        self._lock: ContextManager[Any] = (
            threading.Lock() if self.settings.thread_safe_registry else nullcontext()
        )

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Reject any further register/unregister calls."""
        self._frozen = True

    def register(self, handler: Handler[Any, Any]) -> None:
        """
        Register ``handler`` for the request type it is bound to.

        A handler already registered for that type is replaced.

        Raises:
            RegistrationError: if the registry is frozen, or the handler is not
                bound to a Request subclass
        """
        request_type = handler.request_type
        if not (isinstance(request_type, type) and issubclass(request_type, Request)):
            raise RegistrationError(
                f"{type(handler).__name__} is not bound to a Request subclass "
                f"(got {request_type!r})"
            )
        key = request_type.request_key()
        with self._lock:
            self._check_not_frozen()
            previous = self._handlers.get(key)
            self._handlers[key] = handler
        if self._tracing():
            event = "handler.replaced" if previous is not None else "handler.registered"
            log.debug(
                event,
                request_type=key.__name__,
                handler=type(handler).__name__,
            )

    def unregister(self, request_type: type) -> Handler[Any, Any] | None:
        """Remove and return the handler for ``request_type``, if any."""
        with self._lock:
            self._check_not_frozen()
            return self._handlers.pop(self._key(request_type), None)

    def handler_for(self, request_type: type) -> Handler[Any, Any] | None:
        with self._lock:
            return self._handlers.get(self._key(request_type))

    async def send(self, request: Request[TResponse]) -> TResponse:
        """
        Dispatch ``request`` to its handler and return the handler's result.

        Raises:
            HandlerNotFound: if no handler is registered for the request's type
            ValidationFailure: if the handler's validator rejects the request
            Exception: anything raised by the handler's ``process``, unchanged
        """
        key = self._key(type(request))
        with self._lock:
            handler = self._handlers.get(key)
        if handler is None:
            if self._tracing():
                log.debug("dispatch.handler_missing", request_type=key.__name__)
            raise HandlerNotFound(key)

        if self._tracing():
            log.debug(
                "dispatch.start",
                request_type=key.__name__,
                handler=type(handler).__name__,
            )
        try:
            response = await handler.handle_request(request)
        except ValidationFailure as failure:
            if self._tracing():
                log.debug(
                    "dispatch.rejected",
                    request_type=key.__name__,
                    errors=len(failure.errors),
                    fields=failure.fields,
                )
            raise
        if self._tracing():
            log.debug("dispatch.complete", request_type=key.__name__)
        return response

    def _tracing(self) -> bool:
        return self.settings.log_dispatch and log.isEnabledFor(logging.DEBUG)

    def _key(self, request_type: type) -> type:
        if isinstance(request_type, type) and issubclass(request_type, Request):
            return request_type.request_key()
        return request_type

    def _check_not_frozen(self) -> None:
        if self._frozen:
            raise RegistrationError("Dispatcher is frozen; no further registrations")

    def __contains__(self, request_type: object) -> bool:
        if not isinstance(request_type, type):
            return False
        return self.handler_for(request_type) is not None

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        names = sorted(key.__name__ for key in self._handlers)
        return f"Dispatcher(handlers={names})"
