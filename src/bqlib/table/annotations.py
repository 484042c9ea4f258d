"""Field markers used inside ``typing.Annotated`` on record classes

Example:
    >>> @bigquery_table(db_name="Infos")
    ... class DbInfos(BigQueryTable):
    ...     client: Annotated[Optional[BigqueryClient], Client()] = None
    ...     row_id: Annotated[int, PrimaryKey(), DbName("Id")] = 0
    ...     info1: Optional[str] = None
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Client:
    """Marks the field that holds the transport client"""


@dataclass(frozen=True)
class PrimaryKey:
    """Marks the primary key field"""


@dataclass(frozen=True)
class DbName:
    """Overrides the column name of a field"""

    name: str


@dataclass(frozen=True)
class Required:
    """Marks a column as NOT NULL on the warehouse side"""


@dataclass(frozen=True)
class DbIgnore:
    """Excludes a field from all SQL operations"""
