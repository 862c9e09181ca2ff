from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any, Protocol

from ..models.config_models import SessionConfig
from .activity import ActivitySource, AuthSession

"""Idle session monitor.

Signs the user out after a fixed window without input activity, and on page
hide / before unload.

    UNARMED --authenticated--> ARMED --timer expiry / logout--> UNARMED
                                 |  ^
                                 +--+ activity or route change (reschedule)

While ARMED exactly one logout timer is live: every reschedule cancels the
previous handle before starting a new one. Listener attach (on arm) and detach
(on disarm) are symmetric so no timer or listener outlives the session.

The unload path is best effort: sign-out calls are made synchronously but the
host may terminate before they complete. Sign-out failures are logged and
never raised, since the user is leaving either way.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ACTIVITY_EVENTS",
    "UNLOAD_EVENTS",
    "IDLE_SECONDS",
    "LOGIN_ROUTE",
    "MonitorState",
    "IdleSessionMonitor",
]

IDLE_SECONDS = 60.0
LOGIN_ROUTE = "/login"
ACTIVITY_EVENTS = ("mousedown", "mousemove", "keydown", "scroll", "touchstart", "click")
UNLOAD_EVENTS = ("beforeunload", "pagehide")


class MonitorState(Enum):
    UNARMED = "unarmed"
    ARMED = "armed"


class TimerHandle(Protocol):
    def start(self) -> None: ...
    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]
Navigate = Callable[..., Any]


def thread_timer(interval: float, function: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


class IdleSessionMonitor:
    """Arm / disarm an inactivity logout for the current user session.

    Args:
        sessions: every session kind that may be active (all are signed out)
        navigate: router callback, called as ``navigate(route, replace=True)``
        activity: event source the monitor subscribes to while armed
        idle_seconds: inactivity window
        login_route: redirect target after an idle or explicit logout
        timer_factory: ``(interval, callback) -> handle`` with start()/cancel()
        clock: monotonic seconds, used for last_activity_at
    """

    def __init__(
        self,
        sessions: Sequence[AuthSession],
        navigate: Navigate,
        activity: ActivitySource,
        *,
        idle_seconds: float = IDLE_SECONDS,
        login_route: str = LOGIN_ROUTE,
        timer_factory: TimerFactory = thread_timer,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if idle_seconds <= 0:
            raise ValueError(f"idle_seconds must be > 0: {idle_seconds}")
        self.sessions = list(sessions)
        self.navigate = navigate
        self.activity = activity
        self.idle_seconds = idle_seconds
        self.login_route = login_route
        self._timer_factory = timer_factory
        self._clock = clock

        self._lock = threading.Lock()
        self._state = MonitorState.UNARMED
        self._timer: TimerHandle | None = None
        self._generation = 0
        self.last_activity_at: float | None = None

    @classmethod
    def from_config(
        cls,
        session_cfg: SessionConfig,
        sessions: Sequence[AuthSession],
        navigate: Navigate,
        activity: ActivitySource,
        **kwargs: Any,
    ) -> IdleSessionMonitor:
        return cls(
            sessions,
            navigate,
            activity,
            idle_seconds=session_cfg.idle_timeout_seconds,
            login_route=session_cfg.login_route,
            **kwargs,
        )

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def is_armed(self) -> bool:
        return self._state is MonitorState.ARMED

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    @property
    def is_authenticated(self) -> bool:
        return any(s.is_authenticated for s in self.sessions)

    # -- auth transitions -------------------------------------------------

    def sync_auth(self) -> None:
        """Re-read the sessions' auth flags and arm or disarm accordingly."""
        self.set_authenticated(self.is_authenticated)

    def set_authenticated(self, authenticated: bool) -> None:
        if authenticated and not self.is_armed:
            self._arm()
        elif not authenticated and self.is_armed:
            self._disarm()

    def _arm(self) -> None:
        with self._lock:
            if self._state is MonitorState.ARMED:
                return
            self._state = MonitorState.ARMED
            self.last_activity_at = self._clock()
            for event in ACTIVITY_EVENTS:
                self.activity.add_listener(event, self.record_activity)
            for event in UNLOAD_EVENTS:
                self.activity.add_listener(event, self.page_hidden)
            self._schedule_locked()
        logger.debug(f"idle monitor armed ({self.idle_seconds}s window)")

    def _disarm(self) -> None:
        with self._lock:
            if self._state is MonitorState.UNARMED:
                return
            self._state = MonitorState.UNARMED
            for event in ACTIVITY_EVENTS:
                self.activity.remove_listener(event, self.record_activity)
            for event in UNLOAD_EVENTS:
                self.activity.remove_listener(event, self.page_hidden)
            self._cancel_locked()
        logger.debug("idle monitor disarmed")

    # -- timer ------------------------------------------------------------

    def _schedule_locked(self) -> None:
        self._cancel_locked()
        self._generation += 1
        generation = self._generation
        timer = self._timer_factory(self.idle_seconds, lambda: self._on_timeout(generation))
        self._timer = timer
        timer.start()

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timeout(self, generation: int) -> None:
        with self._lock:
            # stale handle: rescheduled or disarmed after this timer started
            if generation != self._generation or self._state is not MonitorState.ARMED:
                return
            self._timer = None
        logger.info(f"no activity for {self.idle_seconds}s, signing out")
        self.logout()

    # -- events -----------------------------------------------------------

    def record_activity(self, event: str = "mousemove") -> None:
        """Restart the window on a tracked input event."""
        if event not in ACTIVITY_EVENTS:
            return
        with self._lock:
            if self._state is not MonitorState.ARMED:
                return
            self.last_activity_at = self._clock()
            self._schedule_locked()

    def route_changed(self, path: str) -> None:
        """In-app navigation restarts the window like any other activity."""
        with self._lock:
            if self._state is not MonitorState.ARMED:
                return
            self.last_activity_at = self._clock()
            self._schedule_locked()
        logger.debug(f"route changed to {path}, idle window restarted")

    def page_hidden(self, event: str = "pagehide") -> None:
        """Best-effort sign-out on page hide / before unload (no redirect)."""
        if not self.is_armed:
            return
        self._sign_out_all()
        self._disarm()

    def logout(self) -> None:
        """Sign out of every session kind and redirect to the login route."""
        self._sign_out_all()
        self._disarm()
        self.navigate(self.login_route, replace=True)

    def _sign_out_all(self) -> None:
        for session in self.sessions:
            try:
                session.sign_out()
            except Exception as e:
                logger.warning(f"sign-out failed for {type(session).__name__}: {e}")

    # -- lifecycle --------------------------------------------------------

    def close(self) -> None:
        self._disarm()

    def __enter__(self) -> IdleSessionMonitor:
        self.sync_auth()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
