"""Schema creation and first-run seeding.

Order matters: every table is created before any index, and sample rows are
inserted only after all tables exist, because the sample transactions point
at the sample categories and budgets.
"""

import logging
from pathlib import Path

from .errors import DatabaseError
from .executor import QueryExecutor
from .repositories import REPOSITORIES
from .schema import CATEGORIES_TABLE, CORE_TABLES, DATABASE_INFO_CREATE_TABLE, SCHEMA_VERSION
from .service import DatabaseService

logger = logging.getLogger(__name__)


def check_table_exists(db: QueryExecutor, table_name: str) -> bool:
    try:
        rows = db.execute_query(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            [table_name],
        ).rows
    except DatabaseError as err:
        logger.warning("Could not check table %s: %s", table_name, err)
        return False
    return bool(rows)


def check_table_exists_all(db: QueryExecutor) -> bool:
    return all(check_table_exists(db, name) for name in CORE_TABLES)


def check_if_data_exists(db: QueryExecutor) -> bool:
    """Category rows stand in for "the database already holds data"."""
    if not check_table_exists(db, CATEGORIES_TABLE):
        return False
    row = db.execute_query(f"SELECT COUNT(*) AS count FROM {CATEGORIES_TABLE}").first()
    return bool(row and row["count"] > 0)


def create_tables(db: QueryExecutor) -> None:
    for repository_class in REPOSITORIES:
        repository_class(db).create_table()
    db.execute_query(DATABASE_INFO_CREATE_TABLE)
    db.execute_query(
        "INSERT OR IGNORE INTO database_info (key, value) VALUES ('version', ?)",
        [SCHEMA_VERSION],
    )


def create_indexes(db: QueryExecutor) -> None:
    for repository_class in REPOSITORIES:
        repository_class(db).create_indexes()


def insert_sample_data(db: QueryExecutor) -> bool:
    """Seed every table in one transaction unless data is already present."""
    if check_if_data_exists(db):
        logger.info("Database already holds data; skipping sample data")
        return False

    def seed(tx: QueryExecutor) -> None:
        for repository_class in REPOSITORIES:
            repository_class(tx).insert_sample_data()

    db.transaction(seed)
    return True


def initialize_database_full(db: QueryExecutor) -> bool:
    """Create tables, then indexes, then seed an empty database.

    Safe to run repeatedly; returns whether sample data was inserted.
    """
    create_tables(db)
    create_indexes(db)
    seeded = insert_sample_data(db)
    logger.info("Database initialization complete (seeded=%s)", seeded)
    return seeded


def setup_database(db_path: Path | str | None = None, foreign_keys: bool = True) -> DatabaseService:
    service = DatabaseService(db_path, foreign_keys=foreign_keys)
    service.initialize(initialize_database_full)
    return service
