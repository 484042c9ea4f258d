"""Results of running a query builder"""

from dataclasses import dataclass, field
from typing import Any, Generic, Iterator, Optional, TypeVar

import pandas as pd

from bqlib.exceptions import ResultShapeError
from bqlib.transport.models import QueryParameter

TableT = TypeVar("TableT")


@dataclass
class QueryResult(Generic[TableT]):
    """Outcome of a query: either row data or a plain success"""

    sql: str
    params: list[QueryParameter] = field(default_factory=list)
    total_rows: Optional[int] = None
    job_id: Optional[str] = None

    @property
    def is_with_row_data(self) -> bool:
        return False

    @property
    def is_without_row_data(self) -> bool:
        return not self.is_with_row_data

    def expect_with_data(self, message: str = "Expected a result with row data") -> list[TableT]:
        """Return the decoded rows or raise if the result carries none"""
        raise ResultShapeError(f"{message} (got {self.__class__.__name__})")

    def expect_without_data(self, message: str = "Expected a result without row data") -> None:
        """Raise if the result carries row data"""
        if self.is_with_row_data:
            raise ResultShapeError(f"{message} (got {self.__class__.__name__})")

    def __len__(self) -> int:
        return 0

    def __iter__(self) -> Iterator[TableT]:
        return iter(())


@dataclass
class WithRowData(QueryResult[TableT]):
    """A SELECT result with its rows decoded into records"""

    rows: list[TableT] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)

    @property
    def is_with_row_data(self) -> bool:
        return True

    def expect_with_data(self, message: str = "Expected a result with row data") -> list[TableT]:
        return self.rows

    def to_df(self) -> pd.DataFrame:
        """Rows as a DataFrame with one column per query field, named by local name"""
        records: list[dict[str, Any]] = [
            {name: getattr(row, name) for name in self.columns} for row in self.rows
        ]
        return pd.DataFrame(records, columns=self.columns)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[TableT]:
        return iter(self.rows)

    def __repr__(self) -> str:
        return f"WithRowData(rows={len(self.rows)}, total_rows={self.total_rows}, job_id={self.job_id!r})"


@dataclass
class WithoutRowData(QueryResult[TableT]):
    """A successful statement that returns no rows (INSERT, UPDATE, DELETE)"""

    affected_rows: Optional[int] = None

    def __repr__(self) -> str:
        return f"WithoutRowData(affected_rows={self.affected_rows}, job_id={self.job_id!r})"
