"""Dispatcher settings.

Values come from keyword arguments first, then ``BUSLINE_*`` environment
variables, then the defaults below.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class BuslineSettings(BaseSettings):
    """Runtime options for a Dispatcher, frozen after construction.

    Attributes:
        thread_safe_registry: Guard registration and lookup with a lock.
            Only needed when handlers are registered while other threads
            are already dispatching.
        log_dispatch: Emit debug events for registration and dispatch.
    """

    model_config = SettingsConfigDict(env_prefix="BUSLINE_", frozen=True)

    thread_safe_registry: bool = False
    log_dispatch: bool = True
