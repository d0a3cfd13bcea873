from .base import BaseRepository
from .category import CategoryRepository
from .budget import BudgetRepository
from .bank_balance import BankBalanceRepository
from .transaction import TransactionRepository

# Parents before the tables that reference them.
REPOSITORIES = (
    CategoryRepository,
    BudgetRepository,
    BankBalanceRepository,
    TransactionRepository,
)

__all__ = [
    "BaseRepository",
    "CategoryRepository",
    "BudgetRepository",
    "BankBalanceRepository",
    "TransactionRepository",
    "REPOSITORIES",
]
