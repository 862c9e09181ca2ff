from __future__ import annotations

import itertools
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

"""Table storage for the import commit stage.

Records are keyed by their natural key (email): the commit loop looks the
email up and then updates the row in place or inserts a new one. Each row is
its own transaction (BEGIN / COMMIT, ROLLBACK on failure) so one failing row
never undoes another.

Identifiers (table / column names) come from validated config and the record
dataclasses; values are always passed as query parameters.
"""

__all__ = [
    "TableStoreError",
    "UpsertOutcome",
    "PostgresTableStore",
    "InMemoryTableStore",
    "INSERTED",
    "UPDATED",
]

INSERTED = "inserted"
UPDATED = "updated"


class TableStoreError(Exception):
    pass


@dataclass(frozen=True)
class UpsertOutcome:
    action: str  # INSERTED | UPDATED
    id: Any


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


class PostgresTableStore:
    """psycopg2 cursor backed store.

    The connection is expected in autocommit mode so the explicit BEGIN /
    COMMIT issued per row are the only transaction boundaries.
    """

    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor

    def begin(self) -> None:
        self.cursor.execute("BEGIN")

    def commit(self) -> None:
        self.cursor.execute("COMMIT")

    def rollback(self) -> None:
        self.cursor.execute("ROLLBACK")

    def find_id_by_email(self, table: str, email: str) -> Any | None:
        try:
            self.cursor.execute(
                f"SELECT id FROM {_quote(table)} WHERE email = %s LIMIT 1", (email,)
            )
            found = self.cursor.fetchone()
        except Exception as e:
            raise TableStoreError(str(e)) from e
        return found[0] if found else None

    def insert(self, table: str, values: Mapping[str, Any]) -> Any:
        cols = list(values)
        cols_sql = ",".join(_quote(c) for c in cols)
        placeholders = ",".join(["%s"] * len(cols))
        try:
            self.cursor.execute(
                f"INSERT INTO {_quote(table)} ({cols_sql}) VALUES ({placeholders}) RETURNING id",
                [values[c] for c in cols],
            )
            returned = self.cursor.fetchone()
        except Exception as e:
            raise TableStoreError(str(e)) from e
        return returned[0] if returned else None

    def update(self, table: str, row_id: Any, values: Mapping[str, Any]) -> None:
        cols = list(values)
        assignments = ",".join(f"{_quote(c)} = %s" for c in cols)
        try:
            self.cursor.execute(
                f"UPDATE {_quote(table)} SET {assignments} WHERE id = %s",
                [*(values[c] for c in cols), row_id],
            )
        except Exception as e:
            raise TableStoreError(str(e)) from e

    def upsert_by_email(self, table: str, values: Mapping[str, Any]) -> UpsertOutcome:
        existing = self.find_id_by_email(table, values["email"])
        if existing is not None:
            self.update(table, existing, values)
            return UpsertOutcome(action=UPDATED, id=existing)
        return UpsertOutcome(action=INSERTED, id=self.insert(table, values))


class InMemoryTableStore:
    """Dict backed store used for dry runs and when no database is reachable."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[Any, dict[str, Any]]] = {}
        self._ids = itertools.count(1)
        self._pending: dict[str, dict[Any, dict[str, Any]]] | None = None

    def begin(self) -> None:
        self._pending = {t: {k: dict(v) for k, v in rows.items()} for t, rows in self.tables.items()}

    def commit(self) -> None:
        self._pending = None

    def rollback(self) -> None:
        if self._pending is not None:
            self.tables = self._pending
            self._pending = None

    def rows(self, table: str) -> list[dict[str, Any]]:
        return list(self.tables.get(table, {}).values())

    def find_id_by_email(self, table: str, email: str) -> Any | None:
        for row_id, row in self.tables.get(table, {}).items():
            if row.get("email") == email:
                return row_id
        return None

    def insert(self, table: str, values: Mapping[str, Any]) -> Any:
        row_id = next(self._ids)
        self.tables.setdefault(table, {})[row_id] = {"id": row_id, **values}
        return row_id

    def update(self, table: str, row_id: Any, values: Mapping[str, Any]) -> None:
        try:
            self.tables[table][row_id].update(values)
        except KeyError as e:
            raise TableStoreError(f"no row with id {row_id} in {table}") from e

    def upsert_by_email(self, table: str, values: Mapping[str, Any]) -> UpsertOutcome:
        existing = self.find_id_by_email(table, values["email"])
        if existing is not None:
            self.update(table, existing, values)
            return UpsertOutcome(action=UPDATED, id=existing)
        return UpsertOutcome(action=INSERTED, id=self.insert(table, values))
