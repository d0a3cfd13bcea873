"""The query-executor contract shared by the service and transaction scopes."""

from dataclasses import dataclass, field
from typing import Any, Callable, Protocol, Sequence, TypeVar

T = TypeVar("T")

Row = dict[str, Any]


@dataclass
class QueryResult:
    rows: list[Row] = field(default_factory=list)
    insert_id: int | None = None
    changes: int = 0

    def first(self) -> Row | None:
        return self.rows[0] if self.rows else None


class QueryExecutor(Protocol):
    def execute_query(
        self,
        query: str,
        params: Sequence[Any] = (),
        event: str | None = None,
    ) -> QueryResult:
        """Run one statement.

        Reads return their rows as dicts keyed by column name. Writes return
        the affected row count and, for INSERT, the new rowid. ``event`` is
        the change event to announce when the write touched any row.
        """
        ...

    def transaction(self, body: Callable[["QueryExecutor"], T]) -> T:
        """Run ``body`` atomically with a transaction-scoped executor."""
        ...
