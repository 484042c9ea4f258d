"""Query builders for SELECT, INSERT, UPDATE and DELETE on a record's table

Each statement kind has its own builder class, so clauses that only make
sense for one kind (ORDER BY, LIMIT) only exist there. A builder moves
through three further states that are checked when an operation needs
them: whether a client is attached, whether starting data is set, and
whether the query has been built. Every transition returns a new builder
and leaves the receiver unchanged, so a partially configured builder can
be reused as a template.

Example:
    >>> builder = (
    ...     DbInfos.select()
    ...     .with_client(client)
    ...     .add_where_eq("info3", "cc")
    ...     .add_order_by("info2", OrderDirection.ASCENDING)
    ...     .build_query()
    ... )
    >>> builder.get_query_string()
    'SELECT info1, info, info3, yes, info4i, Id FROM `P.D.Infos` WHERE info3 = @__PARAM_0 ORDER BY info ASC'
    >>> result = await builder.run()
"""

import copy
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Optional, TypeVar

from bqlib.exceptions import BuildError, UnknownFieldError
from bqlib.params import make_parameter, param_name
from bqlib.transport.models import QueryParameter, QueryRequest

if TYPE_CHECKING:
    from bqlib.connection.base import QueryTransport
    from bqlib.table.descriptor import TableDescriptor
    from bqlib.table.record import BigQueryTable

    from .result import QueryResult

logger = logging.getLogger(__name__)

TableT = TypeVar("TableT", bound="BigQueryTable")
BuilderT = TypeVar("BuilderT", bound="QueryBuilder[Any]")


class OrderDirection(Enum):
    ASCENDING = "ASC"
    DESCENDING = "DESC"

    def to_query_str(self) -> str:
        return self.value


class QueryKind(Enum):
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class QueryBuilder(Generic[TableT]):
    """State shared by all statement kinds"""

    kind: ClassVar[QueryKind]
    requires_starting_data: ClassVar[bool] = False

    def __init__(self, table: type[TableT]):
        self._table = table
        self._client: Optional["QueryTransport"] = None
        self._params: list[QueryParameter] = []
        self._where_clauses: list[str] = []
        self._param_index = 0
        self._starting_data: Optional[TableT] = None
        self._query = ""
        self._built = False

    @property
    def table(self) -> type[TableT]:
        return self._table

    @property
    def descriptor(self) -> "TableDescriptor":
        return self._table.descriptor()

    @property
    def client(self) -> Optional["QueryTransport"]:
        return self._client

    @property
    def has_client(self) -> bool:
        return self._client is not None

    @property
    def has_starting_data(self) -> bool:
        return self._starting_data is not None

    @property
    def is_built(self) -> bool:
        return self._built

    @property
    def params(self) -> list[QueryParameter]:
        """Parameters collected so far, in insertion order"""
        return list(self._params)

    @property
    def where_clauses(self) -> list[str]:
        return list(self._where_clauses)

    def clone(self: BuilderT) -> BuilderT:
        """Independent copy of this builder; collected clauses are not shared"""
        new = copy.copy(self)
        for name, value in vars(new).items():
            if isinstance(value, list):
                setattr(new, name, list(value))
        return new

    def _require_not_built(self, operation: str) -> None:
        if self._built:
            raise BuildError(
                f"{operation} is not allowed on a built {self.kind.value} query; call un_build() first"
            )

    def _require_built(self, operation: str) -> None:
        if not self._built:
            raise BuildError(
                f"{operation} requires a built {self.kind.value} query; call build_query() first"
            )

    def _require_client(self, operation: str) -> "QueryTransport":
        if self._client is None:
            raise BuildError(
                f"{operation} requires a client on the {self.kind.value} query; call with_client() first"
            )
        return self._client

    def _require_starting_data(self, operation: str) -> TableT:
        if self._starting_data is None:
            raise BuildError(
                f"{operation} requires starting data on the {self.kind.value} query; call set_data() first"
            )
        return self._starting_data

    def with_client(self: BuilderT, client: "QueryTransport") -> BuilderT:
        """Attach the client the query will run through"""
        self._require_not_built("with_client")
        if self._client is not None:
            raise BuildError(f"The {self.kind.value} query already has a client")
        new = self.clone()
        new._client = client
        return new

    def set_data(self: BuilderT, data: Any) -> BuilderT:
        """Set the record whose values feed the statement"""
        self._require_not_built("set_data")
        if self._starting_data is not None:
            raise BuildError(f"The {self.kind.value} query already has starting data")
        if not isinstance(data, self._table):
            raise TypeError(
                f"set_data expects a {self._table.__name__}, got {type(data).__name__}"
            )
        logger.debug("set_data(%r)", data)
        new = self.clone()
        new._starting_data = copy.copy(data)
        return new

    def add_where_eq(self: BuilderT, column: str, value: Any) -> BuilderT:
        """AND a ``column = value`` condition; a None value becomes ``column is NULL``

        Raises:
            UnknownFieldError: If ``column`` is not a query field of the record
        """
        self._require_not_built("add_where_eq")
        logger.debug("add_where_eq(%r, %r)", column, value)
        field = self.descriptor.field(column)
        new = self.clone()

        if value is not None:
            name = param_name(new._param_index)
            param = make_parameter(name, value, field.column_codec)
            if param is not None:
                new._param_index += 1
                new._params.append(param)
                new._where_clauses.append(f"{field.db_name} = @{name}")
                return new

        new._where_clauses.append(f"{field.db_name} is NULL")
        return new

    def add_field_where(self: BuilderT, field_name: str) -> BuilderT:
        """AND a condition matching the starting data's value of ``field_name``"""
        self._require_not_built("add_field_where")
        data = self._require_starting_data("add_field_where")
        logger.debug("add_field_where(%r)", field_name)
        db_name = self.descriptor.field_db_name(field_name)
        param = self.descriptor.param_for_field(data, field_name)

        new = self.clone()
        if param is not None:
            new._add_param(param)
            new._where_clauses.append(f"{db_name} = @{param.name}")
        else:
            new._where_clauses.append(f"{db_name} is NULL")
        return new

    def build_query(self: BuilderT) -> BuilderT:
        """Compose the SQL text; the returned builder can be run"""
        self._require_not_built("build_query")
        client = self._require_client("build_query")
        if self.requires_starting_data:
            self._require_starting_data("build_query")
        built = self.clone()
        built._query = built._compose(client)
        built._built = True
        logger.debug("build_query: %s: %s params=%r", self.kind.value, built._query, built._params)
        return built

    def un_build(self: BuilderT) -> BuilderT:
        """Return to the configurable state, keeping every collected clause"""
        self._require_built("un_build")
        new = self.clone()
        new._built = False
        new._query = ""
        return new

    def get_query_string(self) -> str:
        self._require_built("get_query_string")
        return self._query

    def query_request(self) -> QueryRequest:
        """The request ``run()`` sends for this built query"""
        self._require_built("query_request")
        return QueryRequest(
            query=self._query,
            query_parameters=list(self._params) if self._params else None,
            use_legacy_sql=False,
        )

    async def run(self) -> "QueryResult[TableT]":
        """Send the built query and decode its result"""
        self._require_built("run")
        client = self._require_client("run")
        from .executor import Executor
        return await Executor(client).run_query(self)

    def _compose(self, client: "QueryTransport") -> str:
        raise NotImplementedError

    def _add_param(self, param: QueryParameter) -> None:
        if all(existing.name != param.name for existing in self._params):
            self._params.append(param)

    def _sorted_columns(self) -> list[tuple[str, str]]:
        return self.descriptor.sorted_query_fields()

    def _fields_string(self) -> str:
        return ", ".join(db_name for _, db_name in self._sorted_columns())

    def _where_string(self) -> str:
        if not self._where_clauses:
            return ""
        return " WHERE " + " AND ".join(self._where_clauses)

    def _add_params_for_table_query_fields(self) -> None:
        """Add a parameter for every non-null field of the starting data"""
        data = self._require_starting_data(f"Building a {self.kind.value} query")
        for f in self.descriptor.columns:
            param = self.descriptor.param_for_field(data, f.local_name)
            if param is None:
                if f.required:
                    logger.warning(
                        "Required field '%s' (%s) of %s is NULL; the statement will be rejected",
                        f.local_name, f.db_name, self.descriptor.table_name,
                    )
                continue
            self._add_param(param)

    def _value_parameter_names(self) -> list[tuple[str, Optional[str]]]:
        """(db name, parameter name or None) per column, None when the value is NULL"""
        existing = {p.name for p in self._params}
        result = []
        for _, db_name in self._sorted_columns():
            name = param_name(db_name)
            result.append((db_name, name if name in existing else None))
        return result

    def __repr__(self) -> str:
        state = [
            "client" if self.has_client else "no client",
            "data" if self.has_starting_data else "no data",
            "built" if self._built else "not built",
        ]
        return (
            f"{self.__class__.__name__}({self._table.__name__}, {', '.join(state)}, "
            f"wheres={self._where_clauses!r}, params={[p.name for p in self._params]!r})"
        )


class SelectQuery(QueryBuilder[TableT]):
    """SELECT every query field, optionally filtered, ordered and limited"""

    kind = QueryKind.SELECT

    def __init__(self, table: type[TableT]):
        super().__init__(table)
        self._order_by: list[tuple[str, OrderDirection]] = []
        self._limit: Optional[int] = None

    def add_order_by(
        self, column: str, direction: OrderDirection = OrderDirection.ASCENDING
    ) -> "SelectQuery[TableT]":
        """Append a sort key; earlier keys take precedence"""
        self._require_not_built("add_order_by")
        self.descriptor.field(column)
        new = self.clone()
        new._order_by.append((column, OrderDirection(direction)))
        return new

    def set_limit(self, limit: int) -> "SelectQuery[TableT]":
        self._require_not_built("set_limit")
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise ValueError(f"limit must be a non-negative integer, got: {limit!r}")
        new = self.clone()
        new._limit = limit
        return new

    @property
    def columns(self) -> list[tuple[str, str]]:
        """(local name, db name) in the order the SELECT list emits them"""
        return self._sorted_columns()

    def _order_by_string(self) -> str:
        if not self._order_by:
            return ""
        keys = []
        for column, direction in self._order_by:
            try:
                db_name = self.descriptor.field_db_name(column)
            except UnknownFieldError as e:
                raise BuildError(f"ORDER BY column {column!r} is not a field of {self._table.__name__}") from e
            keys.append(f"{db_name} {direction.to_query_str()}")
        return " ORDER BY " + ", ".join(keys)

    def _limit_string(self) -> str:
        if self._limit is None:
            return ""
        return f" LIMIT {self._limit}"

    def _compose(self, client: "QueryTransport") -> str:
        return (
            f"SELECT {self._fields_string()} FROM {self._table.table_identifier(client)}"
            f"{self._where_string()}{self._order_by_string()}{self._limit_string()}"
        )


class InsertQuery(QueryBuilder[TableT]):
    """INSERT the starting data as one row"""

    kind = QueryKind.INSERT
    requires_starting_data = True

    def _compose(self, client: "QueryTransport") -> str:
        if self._where_clauses:
            logger.warning("WHERE clauses are not used in insert queries: %r", self._where_clauses)
        self._add_params_for_table_query_fields()
        values = ", ".join(
            f"@{name}" if name is not None else "NULL"
            for _, name in self._value_parameter_names()
        )
        return (
            f"insert into {self._table.table_identifier(client)} "
            f"({self._fields_string()}) values({values})"
        )


class UpdateQuery(QueryBuilder[TableT]):
    """UPDATE every column from the starting data, by primary key unless filtered"""

    kind = QueryKind.UPDATE
    requires_starting_data = True

    def _compose(self, client: "QueryTransport") -> str:
        if not self._where_clauses:
            logger.debug("no where clause, adding pk field to where clause")
            self._apply_field_where(self.descriptor.pk_field_name)
        where_clause = self._where_string()
        self._add_params_for_table_query_fields()
        assignments = ", ".join(
            f"{db_name} = @{name}" if name is not None else f"{db_name} = NULL"
            for db_name, name in self._value_parameter_names()
        )
        return f"update {self._table.table_identifier(client)} set {assignments} {where_clause}"

    def _apply_field_where(self, field_name: str) -> None:
        filtered = self.add_field_where(field_name)
        self._params = filtered._params
        self._where_clauses = filtered._where_clauses


class DeleteQuery(QueryBuilder[TableT]):
    """DELETE the row matching the starting data's primary key"""

    kind = QueryKind.DELETE
    requires_starting_data = True

    def _compose(self, client: "QueryTransport") -> str:
        pk_filter = self.add_field_where(self.descriptor.pk_field_name)
        if pk_filter._where_clauses[-1] not in self._where_clauses:
            self._params = pk_filter._params
            self._where_clauses = pk_filter._where_clauses
        return f"DELETE FROM {self._table.table_identifier(client)} {self._where_string()}"
