from .activity import ActivitySource, AuthSession
from .idle_monitor import ACTIVITY_EVENTS, IDLE_SECONDS, IdleSessionMonitor, MonitorState

__all__ = [
    "ACTIVITY_EVENTS",
    "IDLE_SECONDS",
    "ActivitySource",
    "AuthSession",
    "IdleSessionMonitor",
    "MonitorState",
]
