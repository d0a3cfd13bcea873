"""Connection manager: owns the single live connection of one database."""

import logging
import sqlite3
from pathlib import Path
from typing import Any, Callable, Sequence, TypeVar

from . import db as db_module
from .config import MEMORY_DB
from .errors import (
    ConstraintViolation,
    NotInitialized,
    QueryExecutionError,
    TransactionConflict,
)
from .executor import QueryExecutor, QueryResult
from .schema import CATEGORIES_TABLE, CORE_TABLES, SCHEMA_VERSION

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSACTION_UPDATED = "transaction_updated"
BUDGET_UPDATED = "budget_updated"
CATEGORY_UPDATED = "category_updated"
DATABASE_EVENTS = (TRANSACTION_UPDATED, BUDGET_UPDATED, CATEGORY_UPDATED)

DEFAULT_VERSION = SCHEMA_VERSION


class TransactionScope:
    """Executor handed to a transaction body.

    Statements run on the owning service's connection inside the open
    transaction; change events are queued until the service commits.
    """

    def __init__(self, service: "DatabaseService"):
        self._service = service
        self.pending_events: list[str] = []
        self.active = True

    def execute_query(
        self,
        query: str,
        params: Sequence[Any] = (),
        event: str | None = None,
    ) -> QueryResult:
        if not self.active:
            raise TransactionConflict("This transaction has already finished")
        result = self._service._execute(query, params)
        if event and result.changes > 0 and event not in self.pending_events:
            self.pending_events.append(event)
        return result

    def transaction(self, body: Callable[[QueryExecutor], T]) -> T:
        raise TransactionConflict("Nested transactions are not supported")


class DatabaseService:
    def __init__(self, db_path: Path | str | None = None, foreign_keys: bool = True):
        self.db_path = db_path
        self.foreign_keys = foreign_keys
        self._conn: sqlite3.Connection | None = None
        self._listeners: dict[str, list[Callable[[], Any]]] = {name: [] for name in DATABASE_EVENTS}
        self._in_transaction = False
        self._is_resetting = False

    # ---- lifecycle -------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def get_database(self) -> sqlite3.Connection | None:
        return self._conn

    def initialize(self, on_ready: Callable[["DatabaseService"], Any] | None = None) -> sqlite3.Connection:
        """Open the connection, then hand this service to ``on_ready``.

        A no-op returning the live connection when one is already open.
        """
        if self._conn is not None:
            logger.debug("initialize() called on an open database; keeping the existing connection")
            return self._conn
        self._conn = db_module.get_conn(self.db_path, foreign_keys=self.foreign_keys)
        logger.info("Database opened: %s", db_module.resolve_db_path(self.db_path))
        if on_ready is not None:
            try:
                on_ready(self)
            except Exception:
                logger.exception("Database setup failed")
                raise
        return self._conn

    def close_database(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            self._in_transaction = False
            logger.info("Database closed")

    def reset_database(self) -> None:
        """Close and discard the database. Callers must initialize() again."""
        if self._is_resetting:
            return
        self._is_resetting = True
        try:
            self.close_database()
            target = db_module.resolve_db_path(self.db_path)
            if target != MEMORY_DB:
                path = Path(target)
                if path.exists():
                    path.unlink()
                    logger.info("Database file removed: %s", path)
        finally:
            self._is_resetting = False

    def _require_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise NotInitialized()
        return self._conn

    # ---- execution -------------------------------------------------------

    def _execute(self, query: str, params: Sequence[Any] = ()) -> QueryResult:
        conn = self._require_connection()
        try:
            cursor = conn.execute(query, tuple(params))
            if cursor.description is not None:
                return QueryResult(rows=[dict(row) for row in cursor.fetchall()])
        except sqlite3.IntegrityError as err:
            logger.error("Constraint violation: %s", err)
            raise ConstraintViolation(query, err) from err
        except sqlite3.Error as err:
            logger.error("Query failed: %s | %s", err, " ".join(query.split()))
            raise QueryExecutionError(query, err) from err
        return QueryResult(insert_id=cursor.lastrowid, changes=max(cursor.rowcount, 0))

    def execute_query(
        self,
        query: str,
        params: Sequence[Any] = (),
        event: str | None = None,
    ) -> QueryResult:
        result = self._execute(query, params)
        if event and result.changes > 0:
            self.emit(event)
        return result

    def transaction(self, body: Callable[[QueryExecutor], T]) -> T:
        conn = self._require_connection()
        if self._in_transaction:
            raise TransactionConflict()
        self._in_transaction = True
        scope = TransactionScope(self)
        try:
            self._execute("BEGIN")
            try:
                result = body(scope)
                self._execute("COMMIT")
            except BaseException:
                try:
                    if conn.in_transaction:
                        conn.execute("ROLLBACK")
                        logger.warning("Transaction rolled back")
                except sqlite3.Error as err:
                    logger.error("Rollback failed: %s", err)
                raise
        finally:
            scope.active = False
            self._in_transaction = False
        for event in scope.pending_events:
            self.emit(event)
        return result

    # ---- inspection ------------------------------------------------------

    def check_table_exists(self, table_name: str) -> bool:
        if self._conn is None:
            return False
        try:
            row = self._conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                (table_name,),
            ).fetchone()
        except sqlite3.Error:
            return False
        return row is not None

    def is_database_initialized(self) -> bool:
        """All core tables exist and at least one category row is stored."""
        if self._conn is None:
            return False
        try:
            if not all(self.check_table_exists(name) for name in CORE_TABLES):
                return False
            row = self._conn.execute(f"SELECT COUNT(*) AS count FROM {CATEGORIES_TABLE}").fetchone()
            return row is not None and row["count"] > 0
        except sqlite3.Error as err:
            logger.warning("Could not check database initialization: %s", err)
            return False

    def get_database_version(self) -> str:
        if self._conn is None:
            return DEFAULT_VERSION
        try:
            row = self._conn.execute("SELECT value FROM database_info WHERE key='version'").fetchone()
        except sqlite3.Error:
            return DEFAULT_VERSION
        return row["value"] if row is not None else DEFAULT_VERSION

    # ---- change events ---------------------------------------------------

    def _listeners_for(self, event: str) -> list[Callable[[], Any]]:
        if event not in self._listeners:
            raise ValueError(f"Unknown database event: {event!r}")
        return self._listeners[event]

    def on(self, event: str, callback: Callable[[], Any]) -> None:
        listeners = self._listeners_for(event)
        if callback not in listeners:
            listeners.append(callback)

    def off(self, event: str, callback: Callable[[], Any]) -> None:
        listeners = self._listeners_for(event)
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event: str) -> None:
        for callback in list(self._listeners_for(event)):
            try:
                callback()
            except Exception:
                logger.exception("Listener for %s failed", event)
