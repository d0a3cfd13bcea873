"""Exceptions raised by the data-access layer."""


class DatabaseError(Exception):
    """Base class for every error raised by finance_app."""


class NotInitialized(DatabaseError):
    def __init__(self, message: str = "Database is not initialized; call initialize() first"):
        super().__init__(message)


class QueryExecutionError(DatabaseError):
    """A statement failed inside the SQL engine.

    The original ``sqlite3`` exception is kept on ``cause`` (and chained as
    ``__cause__`` by the raiser).
    """

    def __init__(self, query: str, cause: Exception):
        self.query = " ".join(query.split())
        self.cause = cause
        super().__init__(f"{cause} (while executing: {self.query})")


class ConstraintViolation(QueryExecutionError):
    """UNIQUE, FOREIGN KEY, CHECK or NOT NULL constraint failed."""


class CreateFailed(DatabaseError):
    pass


class TransactionConflict(DatabaseError):
    def __init__(self, message: str = "A transaction is already in progress on this connection"):
        super().__init__(message)
