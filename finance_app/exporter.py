from datetime import date
from pathlib import Path

import pandas as pd

from . import config
from .errors import NotInitialized
from .schema import CORE_TABLES
from .service import DatabaseService

EXPORTABLE_TABLES = CORE_TABLES


def load_table(service: DatabaseService, table: str) -> pd.DataFrame:
    if table not in EXPORTABLE_TABLES:
        raise ValueError(f"Unknown table: {table!r}")
    conn = service.get_database()
    if conn is None:
        raise NotInitialized()
    return pd.read_sql_query(f"SELECT * FROM {table} ORDER BY id", conn)


def export_filename(table: str, today: date | None = None) -> str:
    return f"{table}-{(today or date.today()).isoformat()}.json"


def export_table(
    service: DatabaseService,
    table: str,
    directory: Path | str | None = None,
    today: date | None = None,
) -> Path:
    """Write ``table`` as an indented JSON array and return the file path."""
    df = load_table(service, table)
    if directory is None:
        directory = config.load_settings()["export_dir"]
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / export_filename(table, today)
    path.write_text(df.to_json(orient="records", indent=2, force_ascii=False), encoding="utf-8")
    return path


def export_all(
    service: DatabaseService,
    directory: Path | str | None = None,
    today: date | None = None,
) -> list[Path]:
    return [export_table(service, table, directory, today) for table in EXPORTABLE_TABLES]
