from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from agency_portal.db.table_store import (
    INSERTED,
    UPDATED,
    InMemoryTableStore,
    PostgresTableStore,
    TableStoreError,
)


def test_postgres_upsert_inserts_when_email_unknown():
    cur = MagicMock()
    cur.fetchone.side_effect = [None, (42,)]
    store = PostgresTableStore(cur)

    outcome = store.upsert_by_email("clients", {"email": "a@x.com", "company_name": "Acme"})

    assert outcome.action == INSERTED
    assert outcome.id == 42
    select_sql, select_params = cur.execute.call_args_list[0].args
    assert select_sql == 'SELECT id FROM "clients" WHERE email = %s LIMIT 1'
    assert select_params == ("a@x.com",)
    insert_sql, insert_params = cur.execute.call_args_list[1].args
    assert insert_sql == 'INSERT INTO "clients" ("email","company_name") VALUES (%s,%s) RETURNING id'
    assert insert_params == ["a@x.com", "Acme"]


def test_postgres_upsert_updates_existing_row_in_place():
    cur = MagicMock()
    cur.fetchone.side_effect = [(7,)]
    store = PostgresTableStore(cur)

    outcome = store.upsert_by_email("employees", {"name": "Jane", "email": "j@x.com", "role": "lead"})

    assert outcome.action == UPDATED
    assert outcome.id == 7
    update_sql, update_params = cur.execute.call_args_list[1].args
    assert update_sql == 'UPDATE "employees" SET "name" = %s,"email" = %s,"role" = %s WHERE id = %s'
    assert update_params == ["Jane", "j@x.com", "lead", 7]


def test_postgres_errors_wrapped():
    cur = MagicMock()
    cur.execute.side_effect = RuntimeError("duplicate key value violates unique constraint")
    with pytest.raises(TableStoreError) as e:
        PostgresTableStore(cur).find_id_by_email("clients", "a@x.com")
    assert "duplicate key" in str(e.value)


def test_postgres_transaction_statements():
    cur = MagicMock()
    store = PostgresTableStore(cur)
    store.begin()
    store.rollback()
    store.commit()
    assert [c.args[0] for c in cur.execute.call_args_list] == ["BEGIN", "ROLLBACK", "COMMIT"]


def test_in_memory_upsert_keyed_by_email():
    store = InMemoryTableStore()
    first = store.upsert_by_email("clients", {"email": "a@x.com", "mrr": 1.0})
    second = store.upsert_by_email("clients", {"email": "a@x.com", "mrr": 2.0})
    assert first.action == INSERTED
    assert second.action == UPDATED
    assert second.id == first.id
    assert store.rows("clients") == [{"id": first.id, "email": "a@x.com", "mrr": 2.0}]


def test_in_memory_rollback_restores_previous_state():
    store = InMemoryTableStore()
    store.upsert_by_email("clients", {"email": "a@x.com", "mrr": 1.0})
    store.begin()
    store.upsert_by_email("clients", {"email": "a@x.com", "mrr": 9.0})
    store.upsert_by_email("clients", {"email": "b@x.com", "mrr": 3.0})
    store.rollback()
    assert [r["email"] for r in store.rows("clients")] == ["a@x.com"]
    assert store.rows("clients")[0]["mrr"] == 1.0
