from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

"""Alert model shown on the dashboard alert feed."""

__all__ = [
    "Alert",
    "AlertSeverity",
    "AlertStatus",
    "UNKNOWN_CLIENT",
]

UNKNOWN_CLIENT = "Unknown Client"


class AlertSeverity(Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class AlertStatus(Enum):
    ACTIVE = "active"
    ACKNOWLEDGED = "acknowledged"
    SNOOZED = "snoozed"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class Alert:
    id: str
    client_id: str | None
    client_name: str
    severity: AlertSeverity
    status: AlertStatus
    title: str
    description: str
    action_required: str
    estimated_impact: str | None
    created_at: datetime | None
