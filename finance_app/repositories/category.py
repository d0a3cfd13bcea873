from typing import Any

from .. import schema
from ..executor import Row
from ..service import CATEGORY_UPDATED
from .base import BaseRepository


class CategoryRepository(BaseRepository):
    table = schema.CATEGORIES_TABLE
    entity_name = "category"
    create_table_sql = schema.CATEGORY_CREATE_TABLE
    index_sql = schema.CATEGORY_INDEXES
    insert_fields = schema.CATEGORY_INSERT_FIELDS
    updatable_fields = schema.CATEGORY_UPDATABLE
    boolean_fields = schema.CATEGORY_BOOLEANS
    defaults = schema.CATEGORY_DEFAULTS
    event = CATEGORY_UPDATED

    def sample_data(self) -> list[dict[str, Any]]:
        return [dict(row) for row in schema.DEFAULT_CATEGORIES]

    def find_by_type(self, type: str) -> list[Row]:
        """Active categories of one type."""
        return self._fetch_all("SELECT * FROM categories WHERE type = ? AND isActive = 1", [type])

    def find_default(self) -> list[Row]:
        return self._fetch_all("SELECT * FROM categories WHERE isDefault = 1 AND isActive = 1")

    def find_all_with_type(self) -> list[Row]:
        return self._fetch_all(
            """
            SELECT *,
                   CASE type WHEN 'income' THEN 'Income' ELSE 'Expense' END AS typeName
            FROM categories
            ORDER BY type, sortOrder
            """
        )
