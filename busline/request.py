"""
Request marker type.
"""

from typing import Generic, TypeVar

TResponse = TypeVar("TResponse")


class Request(Generic[TResponse]):
    """
    Marker base for a request expecting a response of type ``TResponse``.

    Requests are usually plain dataclasses:

        @dataclass(frozen=True)
        class GetUser(Request[User]):
            user_id: str

    The dispatcher routes on ``request_key()``, which is the concrete class
    unless a subclass overrides it.
    """

    @classmethod
    def request_key(cls) -> type:
        return cls
