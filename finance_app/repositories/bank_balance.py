import logging
from typing import Any

from .. import schema
from ..executor import QueryExecutor, Row
from .base import BaseRepository

logger = logging.getLogger(__name__)


class BankBalanceRepository(BaseRepository):
    table = schema.BANK_BALANCES_TABLE
    entity_name = "bank balance"
    create_table_sql = schema.BANK_BALANCE_CREATE_TABLE
    index_sql = schema.BANK_BALANCE_INDEXES
    insert_fields = schema.BANK_BALANCE_INSERT_FIELDS
    updatable_fields = schema.BANK_BALANCE_UPDATABLE
    order_by = "year DESC, month DESC"

    def sample_data(self) -> list[dict[str, Any]]:
        return [dict(row) for row in schema.SAMPLE_BANK_BALANCES]

    def find_by_year_month(self, year: int, month: int) -> Row | None:
        return self._fetch_one("SELECT * FROM bank_balances WHERE year = ? AND month = ?", [year, month])

    def find_by_year(self, year: int) -> list[Row]:
        return self._fetch_all("SELECT * FROM bank_balances WHERE year = ? ORDER BY month ASC", [year])

    def initialize_year(self, year: int) -> int:
        """Seed twelve zero balances for ``year`` unless it already has rows.

        Returns the number of rows inserted (0 or 12).
        """
        if self.find_by_year(year):
            return 0

        insert = self._insert_sql()

        def seed(tx: QueryExecutor) -> int:
            for month in range(1, 13):
                tx.execute_query(insert, [year, month, 0, 0])
            return 12

        inserted = self.db.transaction(seed)
        logger.info("Initialized bank balances for %s", year)
        return inserted
