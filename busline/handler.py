"""
Handler base class: optional validation followed by asynchronous processing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar, get_args, get_origin

from .request import Request
from .validator import Validator

TRequest = TypeVar("TRequest", bound=Request[Any])
TResponse = TypeVar("TResponse")


class Handler(ABC, Generic[TRequest, TResponse]):
    """
    Processes one request type into one response type.

    The request type is taken from the generic parameters, or from an explicit
    ``request_type`` class attribute when the handler is itself generic.

    Example:
        class LoginHandler(Handler[LoginRequest, LoginResponse]):
            def __init__(self):
                super().__init__(LoginValidator())

            async def process(self, request):
                return LoginResponse(token="...")
    """

    request_type: ClassVar[type | None] = None
    response_type: ClassVar[Any] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for base in cls.__dict__.get("__orig_bases__", ()):
            origin = get_origin(base)
            if not (isinstance(origin, type) and issubclass(origin, Handler)):
                continue
            args = get_args(base)
            if "request_type" not in cls.__dict__ and args and isinstance(args[0], type):
                cls.request_type = args[0]
            if "response_type" not in cls.__dict__ and len(args) > 1:
                if not isinstance(args[1], TypeVar):
                    cls.response_type = args[1]

    def __init__(self, validator: Validator[TRequest] | None = None):
        self._validator = validator

    @property
    def validator(self) -> Validator[TRequest] | None:
        return self._validator

    async def handle_request(self, request: TRequest) -> TResponse:
        """
        Validate ``request`` (when a validator is configured), then process it.

        Raises:
            ValidationFailure: if the validator rejects the request; ``process``
                is not called
        """
        if self._validator is not None:
            self._validator.validate(request)
        return await self.process(request)

    @abstractmethod
    async def process(self, request: TRequest) -> TResponse:
        """Business logic. Whatever this raises reaches the caller untouched."""

    def __repr__(self) -> str:
        request_name = self.request_type.__name__ if self.request_type else None
        return f"{type(self).__name__}(request_type={request_name})"
