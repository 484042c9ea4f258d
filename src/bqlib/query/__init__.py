"""Query construction and execution"""

from .builder import (
    OrderDirection,
    QueryKind,
    QueryBuilder,
    SelectQuery,
    InsertQuery,
    UpdateQuery,
    DeleteQuery,
)
from .executor import Executor, decode_row
from .result import QueryResult, WithRowData, WithoutRowData

__all__ = [
    "OrderDirection",
    "QueryKind",
    "QueryBuilder",
    "SelectQuery",
    "InsertQuery",
    "UpdateQuery",
    "DeleteQuery",
    "Executor",
    "decode_row",
    "QueryResult",
    "WithRowData",
    "WithoutRowData",
]
