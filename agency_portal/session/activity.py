from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

"""Session collaborators for the idle monitor.

AuthSession is the contract each session kind (employee, client) offers.
ActivitySource stands in for the page the user interacts with: the host
dispatches input events into it and the monitor subscribes while armed.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "AuthSession",
    "ActivitySource",
    "Listener",
]

Listener = Callable[[str], None]


class AuthSession(Protocol):
    @property
    def is_authenticated(self) -> bool: ...

    def sign_out(self) -> None: ...


class ActivitySource:
    """Named-event listener registry (add / remove / dispatch)."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def add_listener(self, event: str, listener: Listener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def remove_listener(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event)
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event]

    def listener_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(v) for v in self._listeners.values())

    def dispatch(self, event: str) -> None:
        # copy: a listener may detach itself (logout) while we iterate
        for listener in list(self._listeners.get(event, [])):
            listener(event)
