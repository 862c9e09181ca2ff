from __future__ import annotations

import logging
import select
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from ..models.alert import UNKNOWN_CLIENT, Alert, AlertSeverity, AlertStatus
from ..models.config_models import TableConfig

"""Dashboard alert feed: repository + change subscription.

The subscription keeps a long-lived connection LISTENing on a channel fed by a
trigger on the alerts table and calls a refresh callback once per batch of
notifications. Without a notify-capable connection it falls back to polling a
fingerprint of the table and calls back when the fingerprint changes.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "AlertError",
    "AlertRepository",
    "AlertSubscription",
    "DEFAULT_CHANNEL",
    "notify_trigger_sql",
]

DEFAULT_CHANNEL = "alerts_changes"


class AlertError(Exception):
    pass


def notify_trigger_sql(table: str = "alerts", channel: str = DEFAULT_CHANNEL) -> str:
    """DDL installing a row-change trigger that NOTIFYs channel."""
    return f"""
CREATE OR REPLACE FUNCTION {table}_notify() RETURNS trigger AS $$
BEGIN
  PERFORM pg_notify('{channel}', TG_OP);
  RETURN NULL;
END;
$$ LANGUAGE plpgsql;
DROP TRIGGER IF EXISTS {table}_notify_trg ON {table};
CREATE TRIGGER {table}_notify_trg AFTER INSERT OR UPDATE OR DELETE ON {table}
  FOR EACH ROW EXECUTE FUNCTION {table}_notify();
"""


_SELECT_ALERTS = """
SELECT a.id, a.client_id, c.company_name, c.contact_name, a.severity, a.status,
       a.title, a.description, a.action_required, a.estimated_impact, a.created_at
FROM {alerts} a LEFT JOIN {clients} c ON c.id = a.client_id
"""


def _row_to_alert(row: tuple[Any, ...]) -> Alert:
    (alert_id, client_id, company_name, contact_name, severity, status,
     title, description, action_required, estimated_impact, created_at) = row
    try:
        alert_severity = AlertSeverity(severity)
        alert_status = AlertStatus(status)
    except ValueError as e:
        raise AlertError(f"alert {alert_id}: {e}") from e
    return Alert(
        id=str(alert_id),
        client_id=str(client_id) if client_id is not None else None,
        client_name=company_name or contact_name or UNKNOWN_CLIENT,
        severity=alert_severity,
        status=alert_status,
        title=title,
        description=description,
        action_required=action_required,
        estimated_impact=estimated_impact or None,
        created_at=created_at,
    )


class AlertRepository:
    """CRUD over the alerts table through a psycopg2 cursor."""

    def __init__(self, cursor: Any, *, table: str = "alerts", clients_table: str = "clients") -> None:
        self.cursor = cursor
        self.table = table
        self._select = _SELECT_ALERTS.format(alerts=table, clients=clients_table)

    @classmethod
    def from_config(cls, cursor: Any, tables: TableConfig) -> AlertRepository:
        return cls(cursor, table=tables.alerts, clients_table=tables.clients)

    def _execute(self, sql: str, params: Any = None) -> None:
        try:
            self.cursor.execute(sql, params)
        except Exception as e:
            raise AlertError(str(e)) from e

    def list_alerts(self) -> list[Alert]:
        """All alerts, newest first."""
        self._execute(self._select + " ORDER BY a.created_at DESC")
        return [_row_to_alert(r) for r in self.cursor.fetchall()]

    def get_alert(self, alert_id: str) -> Alert:
        self._execute(self._select + " WHERE a.id = %s", (alert_id,))
        row = self.cursor.fetchone()
        if row is None:
            raise AlertError(f"alert not found: {alert_id}")
        return _row_to_alert(row)

    def add_alert(
        self,
        *,
        client_id: str | None,
        severity: str,
        title: str,
        description: str,
        action_required: str,
        estimated_impact: str | None = None,
        status: str = AlertStatus.ACTIVE.value,
    ) -> Alert:
        try:
            severity = AlertSeverity(severity).value
            status = AlertStatus(status).value
        except ValueError as e:
            raise AlertError(str(e)) from e
        self._execute(
            f"INSERT INTO {self.table} (client_id, severity, status, title, description, "
            "action_required, estimated_impact) VALUES (%s, %s, %s, %s, %s, %s, %s) RETURNING id",
            (client_id, severity, status, title, description, action_required, estimated_impact or None),
        )
        returned = self.cursor.fetchone()
        if returned is None:
            raise AlertError("insert returned no id")
        return self.get_alert(returned[0])

    def update_status(self, alert_id: str, status: str) -> None:
        """Change status; resolved_at is stamped on resolve and cleared otherwise."""
        try:
            new_status = AlertStatus(status)
        except ValueError as e:
            raise AlertError(str(e)) from e
        resolved_at = datetime.now(UTC) if new_status is AlertStatus.RESOLVED else None
        self._execute(
            f"UPDATE {self.table} SET status = %s, resolved_at = %s WHERE id = %s",
            (new_status.value, resolved_at, alert_id),
        )
        self._require_row(alert_id)

    def snooze(self, alert_id: str, hours: float) -> datetime:
        if hours <= 0:
            raise AlertError(f"snooze hours must be > 0: {hours}")
        until = datetime.now(UTC) + timedelta(hours=hours)
        self._execute(
            f"UPDATE {self.table} SET status = %s, snoozed_until = %s WHERE id = %s",
            (AlertStatus.SNOOZED.value, until, alert_id),
        )
        self._require_row(alert_id)
        return until

    def delete_alert(self, alert_id: str) -> None:
        self._execute(f"DELETE FROM {self.table} WHERE id = %s", (alert_id,))
        self._require_row(alert_id)

    def _require_row(self, alert_id: str) -> None:
        if getattr(self.cursor, "rowcount", 1) == 0:
            raise AlertError(f"alert not found: {alert_id}")


class AlertSubscription:
    """Invoke on_change whenever the alerts table changes.

    Args:
        connection: autocommit psycopg2 connection
        on_change: refresh callback (no arguments)
        channel: NOTIFY channel name
        use_notify: False selects the polling fallback
    """

    def __init__(
        self,
        connection: Any,
        on_change: Callable[[], None],
        *,
        channel: str = DEFAULT_CHANNEL,
        table: str = "alerts",
        use_notify: bool = True,
    ) -> None:
        self.connection = connection
        self.on_change = on_change
        self.channel = channel
        self.table = table
        self.use_notify = use_notify
        self._fingerprint: str | None = None
        self._open = False

    @classmethod
    def from_config(
        cls,
        connection: Any,
        on_change: Callable[[], None],
        tables: TableConfig,
        **kwargs: Any,
    ) -> AlertSubscription:
        return cls(connection, on_change, table=tables.alerts, **kwargs)

    def open(self) -> None:
        with self.connection.cursor() as cur:
            if self.use_notify:
                cur.execute(f"LISTEN {self.channel}")
            else:
                self._fingerprint = self._read_fingerprint(cur)
        self._open = True
        logger.debug(f"alert subscription open (notify={self.use_notify})")

    def _read_fingerprint(self, cur: Any) -> str:
        cur.execute(
            f"SELECT md5(coalesce(string_agg(t::text, '|' ORDER BY t.id), '')) FROM {self.table} t"
        )
        row = cur.fetchone()
        return row[0] if row else ""

    def poll_once(self, timeout: float = 1.0) -> bool:
        """Wait up to timeout for a change; return True when on_change ran."""
        if not self._open:
            self.open()
        if self.use_notify:
            if select.select([self.connection], [], [], timeout) == ([], [], []):
                return False
            self.connection.poll()
            if not self.connection.notifies:
                return False
            self.connection.notifies.clear()
        else:
            with self.connection.cursor() as cur:
                fingerprint = self._read_fingerprint(cur)
            if fingerprint == self._fingerprint:
                return False
            self._fingerprint = fingerprint
        try:
            self.on_change()
        except Exception as e:
            # a failing refresh must not end the subscription
            logger.error(f"alert refresh callback failed: {e}")
        return True

    def run(self, stop: threading.Event, *, interval: float = 1.0) -> None:
        """Poll until stop is set."""
        while not stop.is_set():
            changed = self.poll_once(interval)
            if not changed and not self.use_notify:
                stop.wait(interval)

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        if self.use_notify:
            with self.connection.cursor() as cur:
                cur.execute(f"UNLISTEN {self.channel}")

    def __enter__(self) -> AlertSubscription:
        self.open()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
