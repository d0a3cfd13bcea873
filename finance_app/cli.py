import argparse
import logging
import sys
from pathlib import Path

from . import config
from .bootstrap import initialize_database_full
from .errors import DatabaseError
from .exporter import EXPORTABLE_TABLES, export_all, export_table
from .importer import ImportService
from .repositories import REPOSITORIES, BankBalanceRepository
from .service import DatabaseService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="finance-app", description="Personal finance database tools")
    parser.add_argument("--db", type=Path, help="SQLite database file (remembered for later runs)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create tables and indexes, seed an empty database")
    sub.add_parser("status", help="Show initialization state, schema version and row counts")

    p_import = sub.add_parser("import", help="Import records from a JSON file")
    p_import.add_argument("file", type=Path)

    p_export = sub.add_parser("export", help="Export a table as JSON")
    p_export.add_argument("table", choices=[*EXPORTABLE_TABLES, "all"])
    p_export.add_argument("--out", type=Path, default=None, help="Target directory")

    p_year = sub.add_parser("init-year", help="Create zero bank balances for every month of a year")
    p_year.add_argument("year", type=int)

    sub.add_parser("reset", help="Delete the database")
    return parser


def _status(service: DatabaseService) -> None:
    print(f"Initialized: {'yes' if service.is_database_initialized() else 'no'}")
    print(f"Schema version: {service.get_database_version()}")
    for repository_class in REPOSITORIES:
        repository = repository_class(service)
        if service.check_table_exists(repository.table):
            print(f"  {repository.table}: {repository.count()}")
        else:
            print(f"  {repository.table}: missing")


def run(args: argparse.Namespace, settings: dict) -> int:
    service = DatabaseService(args.db, foreign_keys=bool(settings["foreign_keys"]))
    if args.command == "reset":
        service.reset_database()
        print("Database reset")
        return 0

    service.initialize(initialize_database_full)
    try:
        if args.command in ("init", "status"):
            _status(service)
        elif args.command == "import":
            result = ImportService(service).import_from_file(args.file)
            print(result.message)
            for error in result.errors:
                print(f"  - {error}", file=sys.stderr)
            return 0 if result.success else 1
        elif args.command == "export":
            out_dir = args.out or settings["export_dir"]
            if args.table == "all":
                paths = export_all(service, out_dir)
            else:
                paths = [export_table(service, args.table, out_dir)]
            for path in paths:
                print(f"Exported {path}")
        elif args.command == "init-year":
            inserted = BankBalanceRepository(service).initialize_year(args.year)
            print(f"Inserted {inserted} bank balance rows for {args.year}")
    finally:
        service.close_database()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = config.load_settings()
    logging.basicConfig(
        level=getattr(logging, settings["log_level"]),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.db is not None:
        args.db = args.db.expanduser()
        config.save_last_db(args.db)
    else:
        args.db = config.DB_PATH
    try:
        return run(args, settings)
    except DatabaseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
