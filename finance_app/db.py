import logging
import sqlite3
from pathlib import Path

from . import config

logger = logging.getLogger(__name__)


def resolve_db_path(db_path: Path | str | None = None) -> str:
    """Expanded file path, or an in-memory database when none is given."""
    if db_path is None or str(db_path) == config.MEMORY_DB:
        return config.MEMORY_DB
    return str(Path(db_path).expanduser())


def get_conn(db_path: Path | str | None = None, foreign_keys: bool = True) -> sqlite3.Connection:
    """Return a sqlite3 connection in autocommit mode with dict-friendly rows."""
    target = resolve_db_path(db_path)
    if target != config.MEMORY_DB:
        parent = Path(target).resolve().parent
        if not parent.exists():
            raise FileNotFoundError(f"Database directory not found: {parent}")
    # isolation_level=None: BEGIN/COMMIT/ROLLBACK are issued explicitly
    conn = sqlite3.connect(target, isolation_level=None)
    conn.row_factory = sqlite3.Row
    if foreign_keys:
        conn.execute("PRAGMA foreign_keys = ON")
    logger.debug("Opened sqlite connection to %s (foreign_keys=%s)", target, foreign_keys)
    return conn
