from typing import Any

from .. import schema
from ..executor import Row
from ..service import BUDGET_UPDATED
from .base import BaseRepository

# Category columns are NULL when the referenced category is gone.
_WITH_CATEGORY = """
    SELECT b.*, c.name AS categoryName, c.type AS categoryType, c.icon AS categoryIcon
    FROM budgets b
    LEFT JOIN categories c ON b.categoryId = c.id
"""


class BudgetRepository(BaseRepository):
    table = schema.BUDGETS_TABLE
    entity_name = "budget"
    create_table_sql = schema.BUDGET_CREATE_TABLE
    index_sql = schema.BUDGET_INDEXES
    insert_fields = schema.BUDGET_INSERT_FIELDS
    updatable_fields = schema.BUDGET_UPDATABLE
    boolean_fields = schema.BUDGET_BOOLEANS
    defaults = schema.BUDGET_DEFAULTS
    order_by = "month DESC, categoryId ASC"
    event = BUDGET_UPDATED

    def sample_data(self) -> list[dict[str, Any]]:
        return schema.sample_budgets()

    def find_by_category_id(self, category_id: int) -> list[Row]:
        return self._fetch_all("SELECT * FROM budgets WHERE categoryId = ? ORDER BY month DESC", [category_id])

    def find_by_category_and_month(self, category_id: int, month: str) -> list[Row]:
        return self._fetch_all(
            "SELECT * FROM budgets WHERE categoryId = ? AND month = ? ORDER BY id ASC",
            [category_id, month],
        )

    def find_by_date_range(self, start_date: str, end_date: str) -> list[Row]:
        """Budgets whose [startDate, endDate] overlaps the given range."""
        return self._fetch_all(
            "SELECT * FROM budgets WHERE startDate <= ? AND endDate >= ? ORDER BY startDate ASC, id ASC",
            [end_date, start_date],
        )

    def find_by_period(self, period: str) -> list[Row]:
        return self._fetch_all("SELECT * FROM budgets WHERE period = ?", [period])

    def find_by_month(self, month: str) -> list[Row]:
        return self._fetch_all("SELECT * FROM budgets WHERE month = ? ORDER BY categoryId ASC", [month])

    def get_active_budgets(self, month: str) -> list[Row]:
        """Budgets for ``month`` (YYYY-MM) and later."""
        return self._fetch_all(
            "SELECT * FROM budgets WHERE month >= ? ORDER BY month DESC, categoryId ASC",
            [month],
        )

    def find_all_with_category(self) -> list[Row]:
        return self._fetch_all(_WITH_CATEGORY + " ORDER BY b.month DESC, b.categoryId ASC")

    def find_by_id_with_category(self, id: int) -> Row | None:
        return self._fetch_one(_WITH_CATEGORY + " WHERE b.id = ?", [id])

    def find_by_month_with_category(self, month: str) -> list[Row]:
        return self._fetch_all(_WITH_CATEGORY + " WHERE b.month = ? ORDER BY b.categoryId ASC", [month])
