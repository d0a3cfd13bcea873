from typing import Any

from .. import schema
from ..executor import Row
from ..service import TRANSACTION_UPDATED
from .base import BaseRepository

_WITH_CATEGORY = """
    SELECT t.*, c.name AS categoryName, c.icon AS categoryIcon
    FROM transactions t
    LEFT JOIN categories c ON t.categoryId = c.id
"""


class TransactionRepository(BaseRepository):
    """Transactions plus the income/expense reports built on them.

    Date filters compare the stored ISO strings with an inclusive BETWEEN, so
    bounds must be given at the precision the dates are stored with.
    """

    table = schema.TRANSACTIONS_TABLE
    entity_name = "transaction"
    create_table_sql = schema.TRANSACTION_CREATE_TABLE
    index_sql = schema.TRANSACTION_INDEXES
    insert_fields = schema.TRANSACTION_INSERT_FIELDS
    updatable_fields = schema.TRANSACTION_UPDATABLE
    defaults = schema.TRANSACTION_DEFAULTS
    order_by = "date DESC"
    event = TRANSACTION_UPDATED

    def sample_data(self) -> list[dict[str, Any]]:
        return schema.sample_transactions()

    def find_by_category_id(self, category_id: int) -> list[Row]:
        return self._fetch_all("SELECT * FROM transactions WHERE categoryId = ? ORDER BY date DESC", [category_id])

    def find_by_budget_id(self, budget_id: int) -> list[Row]:
        return self._fetch_all("SELECT * FROM transactions WHERE budgetId = ? ORDER BY date DESC", [budget_id])

    def find_by_date_range(self, start_date: str, end_date: str) -> list[Row]:
        return self._fetch_all(
            "SELECT * FROM transactions WHERE date BETWEEN ? AND ? ORDER BY date DESC",
            [start_date, end_date],
        )

    def find_all_with_category(self) -> list[Row]:
        return self._fetch_all(_WITH_CATEGORY + " ORDER BY t.date DESC")

    def find_by_id_with_category(self, id: int) -> Row | None:
        return self._fetch_one(_WITH_CATEGORY + " WHERE t.id = ?", [id])

    def find_by_date_range_with_category(self, start_date: str, end_date: str) -> list[Row]:
        return self._fetch_all(
            _WITH_CATEGORY + " WHERE t.date BETWEEN ? AND ? ORDER BY t.date DESC",
            [start_date, end_date],
        )

    def _total_by_type(self, type: str, start_date: str | None, end_date: str | None) -> float:
        query = "SELECT COALESCE(SUM(amount), 0) AS total FROM transactions WHERE type = ?"
        params: list[Any] = [type]
        if start_date is not None:
            query += " AND date >= ?"
            params.append(start_date)
        if end_date is not None:
            query += " AND date <= ?"
            params.append(end_date)
        row = self.db.execute_query(query, params).first()
        return row["total"] if row else 0

    def get_total_income(self, start_date: str | None = None, end_date: str | None = None) -> float:
        return self._total_by_type("income", start_date, end_date)

    def get_total_expense(self, start_date: str | None = None, end_date: str | None = None) -> float:
        return self._total_by_type("expense", start_date, end_date)

    def get_summary_by_category(self, start_date: str, end_date: str) -> list[Row]:
        return self._fetch_all(
            """
            SELECT t.categoryId,
                   c.name AS categoryName,
                   COALESCE(SUM(t.amount), 0) AS total,
                   COUNT(*) AS count
            FROM transactions t
            LEFT JOIN categories c ON t.categoryId = c.id
            WHERE t.date BETWEEN ? AND ?
            GROUP BY t.categoryId, c.name
            ORDER BY total DESC
            """,
            [start_date, end_date],
        )

    def get_summary_by_budget(self, start_date: str, end_date: str) -> list[Row]:
        """Spending per budget in the range.

        Budgets active during the range are listed even without transactions
        (``totalSpent`` 0); other budgets only when they have spending in it.
        """
        rows = self.db.execute_query(
            """
            SELECT b.id AS budgetId,
                   b.name AS budgetName,
                   COALESCE(SUM(t.amount), 0) AS totalSpent,
                   b.amount AS budgetAmount,
                   CASE WHEN COALESCE(SUM(t.amount), 0) > b.amount THEN 1 ELSE 0 END AS isExceeded
            FROM budgets b
            LEFT JOIN transactions t ON b.id = t.budgetId AND t.date BETWEEN ? AND ?
            GROUP BY b.id, b.name, b.amount
            HAVING COUNT(t.id) > 0 OR (b.startDate <= ? AND b.endDate >= ?)
            ORDER BY b.id ASC
            """,
            [start_date, end_date, end_date, start_date],
        ).rows
        for row in rows:
            row["isExceeded"] = bool(row["isExceeded"])
        return rows
