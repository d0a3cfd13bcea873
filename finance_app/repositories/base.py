import logging
from typing import Any, Iterable, Mapping, Sequence

from ..errors import CreateFailed
from ..executor import QueryExecutor, Row

logger = logging.getLogger(__name__)


class BaseRepository:
    """CRUD shared by every entity repository.

    Subclasses describe their table through the class attributes below; the
    statements themselves are generated from those.
    """

    table: str = ""
    entity_name: str = "record"
    create_table_sql: str = ""
    index_sql: Sequence[str] = ()
    insert_fields: Sequence[str] = ()
    updatable_fields: Sequence[str] = ()
    boolean_fields: Sequence[str] = ()
    defaults: Mapping[str, Any] = {}
    order_by: str = ""
    event: str | None = None

    def __init__(self, db: QueryExecutor):
        self.db = db

    # ---- schema ----------------------------------------------------------

    def create_table(self) -> None:
        self.db.execute_query(self.create_table_sql)

    def create_indexes(self) -> None:
        for statement in self.index_sql:
            self.db.execute_query(statement)

    def sample_data(self) -> list[dict[str, Any]]:
        return []

    def insert_sample_data(self) -> None:
        rows = self.sample_data()
        for record in rows:
            self.create(record)
        logger.info("Inserted %d sample %s rows", len(rows), self.table)

    # ---- helpers ---------------------------------------------------------

    def _hydrate(self, row: Row) -> Row:
        for name in self.boolean_fields:
            if row.get(name) is not None:
                row[name] = bool(row[name])
        return row

    def _fetch_all(self, query: str, params: Iterable[Any] = ()) -> list[Row]:
        return [self._hydrate(row) for row in self.db.execute_query(query, tuple(params)).rows]

    def _fetch_one(self, query: str, params: Iterable[Any] = ()) -> Row | None:
        rows = self._fetch_all(query, params)
        return rows[0] if rows else None

    def _insert_values(self, record: Mapping[str, Any]) -> list[Any]:
        return [record.get(name, self.defaults.get(name)) for name in self.insert_fields]

    def _insert_sql(self) -> str:
        columns = ", ".join(self.insert_fields)
        placeholders = ", ".join("?" for _ in self.insert_fields)
        return f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})"

    # ---- CRUD ------------------------------------------------------------

    def find_by_id(self, id: int) -> Row | None:
        return self._fetch_one(f"SELECT * FROM {self.table} WHERE id = ?", [id])

    def find_all(self) -> list[Row]:
        query = f"SELECT * FROM {self.table}"
        if self.order_by:
            query += f" ORDER BY {self.order_by}"
        return self._fetch_all(query)

    def create(self, record: Mapping[str, Any]) -> Row:
        """Insert ``record`` and return the stored row, timestamps included.

        Keys outside the insert columns (``id``, ``createdAt``...) are ignored.
        """
        result = self.db.execute_query(self._insert_sql(), self._insert_values(record), event=self.event)
        if not result.insert_id:
            raise CreateFailed(f"Failed to create {self.entity_name}: no id returned")
        created = self.find_by_id(result.insert_id)
        if created is None:
            raise CreateFailed(f"Failed to create {self.entity_name}: row {result.insert_id} not found")
        return created

    def update(self, id: int, changes: Mapping[str, Any]) -> bool:
        """Apply the allowlisted, non-None values of ``changes``."""
        fields = [name for name in self.updatable_fields if changes.get(name) is not None]
        if not fields:
            return False
        assignments = ", ".join(f"{name} = ?" for name in fields)
        query = f"UPDATE {self.table} SET {assignments}, updatedAt = CURRENT_TIMESTAMP WHERE id = ?"
        params = [changes[name] for name in fields] + [id]
        return self.db.execute_query(query, params, event=self.event).changes > 0

    def delete(self, id: int) -> bool:
        result = self.db.execute_query(f"DELETE FROM {self.table} WHERE id = ?", [id], event=self.event)
        return result.changes > 0

    def count(self) -> int:
        row = self.db.execute_query(f"SELECT COUNT(*) AS count FROM {self.table}").first()
        return row["count"] if row else 0
