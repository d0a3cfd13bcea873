"""Best-effort bulk import of categories, budgets, transactions and balances.

Records are created one by one through the repositories. A failing record is
reported and skipped; nothing already imported is rolled back.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .errors import NotInitialized
from .executor import QueryExecutor
from .repositories import (
    BankBalanceRepository,
    BaseRepository,
    BudgetRepository,
    CategoryRepository,
    TransactionRepository,
)

logger = logging.getLogger(__name__)

# (import key, label used in error messages), in import order
IMPORT_SECTIONS = (
    ("categories", "category"),
    ("budgets", "budget"),
    ("transactions", "transaction"),
    ("bankBalances", "bank balance"),
)


def _empty_counts() -> dict[str, int]:
    return {key: 0 for key, _ in IMPORT_SECTIONS}


@dataclass
class ImportResult:
    success: bool = True
    message: str = ""
    imported: dict[str, int] = field(default_factory=_empty_counts)
    errors: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.imported.values())

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ImportService:
    def __init__(self, db: QueryExecutor):
        self.db = db
        self.categories = CategoryRepository(db)
        self._repositories: dict[str, BaseRepository] = {
            "categories": self.categories,
            "budgets": BudgetRepository(db),
            "transactions": TransactionRepository(db),
            "bankBalances": BankBalanceRepository(db),
        }

    def import_from_file(self, path: Path | str) -> ImportResult:
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as err:
            logger.error("Could not read import file %s: %s", path, err)
            return ImportResult(success=False, message=f"Import failed: {err}", errors=[str(err)])
        if not isinstance(data, dict):
            error = "Import file must contain a JSON object"
            return ImportResult(success=False, message=f"Import failed: {error}", errors=[error])
        return self.import_data(data)

    def import_data(self, data: Mapping[str, Any]) -> ImportResult:
        try:
            self.db.execute_query("SELECT 1")
        except NotInitialized as err:
            logger.error("Import aborted: %s", err)
            return ImportResult(success=False, message=f"Import failed: {err}", errors=[str(err)])

        result = ImportResult()
        for key, label in IMPORT_SECTIONS:
            records = data.get(key)
            if not records:
                continue
            if not isinstance(records, list):
                result.errors.append(f"Failed to import {label}: '{key}' must be a list")
                continue
            repository = self._repositories[key]
            for record in records:
                try:
                    if not isinstance(record, dict):
                        raise ValueError("record must be an object")
                    if key == "transactions":
                        record = self._with_category_type(record)
                    repository.create(record)
                    result.imported[key] += 1
                except Exception as err:
                    result.errors.append(f"Failed to import {label}: {err}")

        if result.errors:
            result.success = False
            result.message = (
                f"Partially imported: {result.total} records imported, {len(result.errors)} failed"
            )
        else:
            result.message = f"Successfully imported {result.total} records"
        logger.info(result.message)
        return result

    def _with_category_type(self, record: dict[str, Any]) -> dict[str, Any]:
        """Default a transaction's type from its category and reject mismatches."""
        category = None
        if record.get("categoryId") is not None:
            category = self.categories.find_by_id(record["categoryId"])
        if category is None:
            return record
        declared = record.get("type")
        if declared is None:
            return {**record, "type": category["type"]}
        if declared != category["type"]:
            raise ValueError(
                f"type '{declared}' does not match category '{category['name']}' ({category['type']})"
            )
        return record
