"""Table definitions, indexes, update allowlists and seed rows.

Columns are stored camelCase and the same names are used as row keys and in
the import/export JSON, so no name conversion happens anywhere.
"""

from datetime import date
from typing import Any

from dateutil.relativedelta import relativedelta

SCHEMA_VERSION = "1.0.0"

CATEGORY_TYPES = ("income", "expense")
TRANSACTION_TYPES = ("income", "expense")
BUDGET_PERIODS = ("daily", "weekly", "monthly", "yearly")

CATEGORIES_TABLE = "categories"
BUDGETS_TABLE = "budgets"
TRANSACTIONS_TABLE = "transactions"
BANK_BALANCES_TABLE = "bank_balances"
DATABASE_INFO_TABLE = "database_info"

# ---- categories ---------------------------------------------------------

CATEGORY_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    icon TEXT NOT NULL,
    type TEXT NOT NULL CHECK(type IN ('income', 'expense')),
    sortOrder INTEGER DEFAULT 0,
    isDefault BOOLEAN DEFAULT 0,
    isActive BOOLEAN DEFAULT 1,
    createdAt DATETIME DEFAULT CURRENT_TIMESTAMP,
    updatedAt DATETIME DEFAULT CURRENT_TIMESTAMP
)
"""

CATEGORY_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_categories_type ON categories(type)",
    "CREATE INDEX IF NOT EXISTS idx_categories_isDefault ON categories(isDefault)",
    "CREATE INDEX IF NOT EXISTS idx_categories_isActive ON categories(isActive)",
)

CATEGORY_INSERT_FIELDS = ("name", "icon", "type", "sortOrder", "isDefault", "isActive")
CATEGORY_UPDATABLE = ("name", "icon", "type", "sortOrder", "isDefault", "isActive")
CATEGORY_DEFAULTS = {"sortOrder": 0, "isDefault": False, "isActive": True}
CATEGORY_BOOLEANS = ("isDefault", "isActive")

DEFAULT_CATEGORIES: list[dict[str, Any]] = [
    {"name": "餐饮", "icon": "🍚", "type": "expense", "sortOrder": 1, "isDefault": True, "isActive": True},
    {"name": "交通", "icon": "🚌", "type": "expense", "sortOrder": 2, "isDefault": True, "isActive": True},
    {"name": "购物", "icon": "🛍️", "type": "expense", "sortOrder": 3, "isDefault": True, "isActive": True},
    {"name": "工资", "icon": "💰", "type": "income", "sortOrder": 1, "isDefault": True, "isActive": True},
    {"name": "家用", "icon": "🧓", "type": "expense", "sortOrder": 5, "isDefault": True, "isActive": True},
    {"name": "账单", "icon": "🧾", "type": "expense", "sortOrder": 6, "isDefault": True, "isActive": True},
]

# ---- budgets ------------------------------------------------------------

BUDGET_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS budgets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    categoryId INTEGER NOT NULL,
    amount DECIMAL(10,2) NOT NULL CHECK(amount >= 0),
    period TEXT NOT NULL CHECK(period IN ('daily', 'weekly', 'monthly', 'yearly')),
    startDate TEXT NOT NULL,
    endDate TEXT NOT NULL,
    month TEXT NOT NULL,
    isRegular BOOLEAN DEFAULT 0,
    isBudgetExceeded BOOLEAN DEFAULT 0,
    createdAt DATETIME DEFAULT CURRENT_TIMESTAMP,
    updatedAt DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (categoryId) REFERENCES categories(id)
)
"""

BUDGET_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_budgets_category ON budgets(categoryId)",
    "CREATE INDEX IF NOT EXISTS idx_budgets_month ON budgets(month)",
    "CREATE INDEX IF NOT EXISTS idx_budgets_startDate ON budgets(startDate)",
    "CREATE INDEX IF NOT EXISTS idx_budgets_endDate ON budgets(endDate)",
)

BUDGET_INSERT_FIELDS = (
    "name", "categoryId", "amount", "period", "startDate", "endDate", "month",
    "isRegular", "isBudgetExceeded",
)
BUDGET_UPDATABLE = BUDGET_INSERT_FIELDS
BUDGET_DEFAULTS = {"isRegular": False, "isBudgetExceeded": False}
BUDGET_BOOLEANS = ("isRegular", "isBudgetExceeded")


def month_bounds(today: date | None = None) -> tuple[str, str, str]:
    """Return (first day, last day, YYYY-MM) of the month containing ``today``."""
    today = today or date.today()
    start = today.replace(day=1)
    end = start + relativedelta(months=1, days=-1)
    return start.isoformat(), end.isoformat(), start.strftime("%Y-%m")


def sample_budgets(today: date | None = None) -> list[dict[str, Any]]:
    start, end, month = month_bounds(today)
    return [
        {
            "name": "餐饮", "categoryId": 1, "amount": 2000, "period": "monthly",
            "startDate": start, "endDate": end, "month": month,
            "isRegular": True, "isBudgetExceeded": False,
        },
        {
            "name": "交通", "categoryId": 2, "amount": 1000, "period": "monthly",
            "startDate": start, "endDate": end, "month": month,
            "isRegular": True, "isBudgetExceeded": False,
        },
    ]

# ---- transactions -------------------------------------------------------

TRANSACTION_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    amount REAL NOT NULL,
    categoryId INTEGER NOT NULL,
    budgetId INTEGER NOT NULL,
    description TEXT,
    date DATETIME NOT NULL,
    type TEXT NOT NULL CHECK(type IN ('income', 'expense')),
    createdAt DATETIME DEFAULT CURRENT_TIMESTAMP,
    updatedAt DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (categoryId) REFERENCES categories(id),
    FOREIGN KEY (budgetId) REFERENCES budgets(id)
)
"""

TRANSACTION_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date)",
    "CREATE INDEX IF NOT EXISTS idx_transactions_category ON transactions(categoryId)",
    "CREATE INDEX IF NOT EXISTS idx_transactions_budget ON transactions(budgetId)",
)

TRANSACTION_INSERT_FIELDS = ("amount", "categoryId", "budgetId", "description", "date", "type")
TRANSACTION_UPDATABLE = TRANSACTION_INSERT_FIELDS
TRANSACTION_DEFAULTS = {"description": None}


def sample_transactions(today: date | None = None) -> list[dict[str, Any]]:
    day = (today or date.today()).isoformat()
    return [
        {"amount": 30, "categoryId": 1, "budgetId": 1, "description": "午餐", "date": day, "type": "expense"},
        {"amount": 100, "categoryId": 2, "budgetId": 2, "description": "地铁票", "date": day, "type": "expense"},
    ]

# ---- bank balances ------------------------------------------------------

BANK_BALANCE_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS bank_balances (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    year INTEGER NOT NULL,
    month INTEGER NOT NULL CHECK(month BETWEEN 1 AND 12),
    openingBalance DECIMAL(10,2) NOT NULL,
    closingBalance DECIMAL(10,2) NOT NULL,
    createdAt DATETIME DEFAULT CURRENT_TIMESTAMP,
    updatedAt DATETIME DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(year, month)
)
"""

BANK_BALANCE_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_bank_balances_year_month ON bank_balances(year, month)",
)

BANK_BALANCE_INSERT_FIELDS = ("year", "month", "openingBalance", "closingBalance")
BANK_BALANCE_UPDATABLE = BANK_BALANCE_INSERT_FIELDS

SAMPLE_BANK_BALANCES: list[dict[str, Any]] = [
    {"year": 2025, "month": 7, "openingBalance": 1000, "closingBalance": 1000},
    {"year": 2025, "month": 8, "openingBalance": 1000, "closingBalance": 1200},
]

# ---- database_info ------------------------------------------------------

DATABASE_INFO_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS database_info (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""

# Dependency order: parents before the tables holding foreign keys to them.
SCHEMAS: dict[str, str] = {
    CATEGORIES_TABLE: CATEGORY_CREATE_TABLE,
    BUDGETS_TABLE: BUDGET_CREATE_TABLE,
    BANK_BALANCES_TABLE: BANK_BALANCE_CREATE_TABLE,
    TRANSACTIONS_TABLE: TRANSACTION_CREATE_TABLE,
}

CORE_TABLES = tuple(SCHEMAS)
