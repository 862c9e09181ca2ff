from .table_store import InMemoryTableStore, PostgresTableStore, TableStoreError

__all__ = ["InMemoryTableStore", "PostgresTableStore", "TableStoreError"]
