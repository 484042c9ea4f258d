"""Base class and decorator for records bound to a BigQuery table"""

import copy
import dataclasses
import logging
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Optional, TypeVar, Union, overload

from bqlib.exceptions import BigQueryError, CardinalityError, ConfigError
from bqlib.transport.models import QueryParameter
from bqlib.utils.identifiers import table_identifier

from .descriptor import TableDescriptor, build_descriptor

if TYPE_CHECKING:
    from bqlib.connection.base import QueryTransport
    from bqlib.query.builder import DeleteQuery, InsertQuery, SelectQuery, UpdateQuery

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="BigQueryTable")


class BigQueryTable:
    """Base class for records stored in a BigQuery table

    Subclasses are dataclasses decorated with ``@bigquery_table``; the
    decorator derives the table descriptor that every classmethod and
    instance method below relies on.

    Example:
        >>> @bigquery_table(db_name="Infos")
        ... class DbInfos(BigQueryTable):
        ...     client: Annotated[Optional[BigqueryClient], Client()] = None
        ...     row_id: Annotated[int, PrimaryKey(), DbName("Id")] = 0
        ...     info1: Optional[str] = None
        >>> entry = await DbInfos.get_by_pk(client, 42)
        >>> entry.info1 = "changed"
        >>> await entry.save()
    """

    __table__: ClassVar[TableDescriptor]

    @classmethod
    def descriptor(cls) -> TableDescriptor:
        """The table descriptor derived for this record class"""
        descriptor = cls.__dict__.get("__table__")
        if descriptor is None:
            raise ConfigError(
                f"{cls.__name__} is not a table record. Decorate it with @bigquery_table."
            )
        return descriptor

    @classmethod
    def table_name(cls) -> str:
        return cls.descriptor().table_name

    @classmethod
    def pk_field_name(cls) -> str:
        return cls.descriptor().pk_field_name

    @classmethod
    def pk_db_name(cls) -> str:
        return cls.descriptor().pk_db_name

    @classmethod
    def query_fields(cls, include_pk: bool = True) -> dict[str, str]:
        """Local name to column name for every field used in SQL"""
        return cls.descriptor().query_fields(include_pk)

    @classmethod
    def field_db_name(cls, local_name: str) -> str:
        return cls.descriptor().field_db_name(local_name)

    @classmethod
    def table_identifier(cls, client: "QueryTransport") -> str:
        """Backtick-quoted `project.dataset.table` reference for the client's dataset"""
        return table_identifier(client.project_id, client.dataset_id, cls.table_name())

    @classmethod
    def new_from_row(cls: type[T], client: "QueryTransport", row: dict[str, Any]) -> T:
        """Build a record from a result row keyed by column name"""
        return cls.descriptor().new_from_row(client, row)

    def pk_value(self) -> Any:
        return getattr(self, self.pk_field_name())

    def get_field(self, local_name: str) -> Any:
        """The JSON parameter value of a field"""
        return self.descriptor().get_field(self, local_name)

    def set_field(self, local_name: str, value: Any) -> None:
        """Set a field from its JSON parameter value"""
        self.descriptor().set_field(self, local_name, value)

    def param_for_field(self, local_name: str) -> Optional[QueryParameter]:
        return self.descriptor().param_for_field(self, local_name)

    def all_params(self) -> list[Optional[QueryParameter]]:
        return self.descriptor().all_params(self)

    def get_client(self) -> "QueryTransport":
        return getattr(self, self.descriptor().client_field.local_name)

    def set_client(self, client: "QueryTransport") -> None:
        setattr(self, self.descriptor().client_field.local_name, client)

    @classmethod
    def select(cls: type[T]) -> "SelectQuery[T]":
        from bqlib.query.builder import SelectQuery
        return SelectQuery(cls)

    @classmethod
    def insert(cls: type[T]) -> "InsertQuery[T]":
        from bqlib.query.builder import InsertQuery
        return InsertQuery(cls)

    @classmethod
    def update(cls: type[T]) -> "UpdateQuery[T]":
        from bqlib.query.builder import UpdateQuery
        return UpdateQuery(cls)

    @classmethod
    def delete(cls: type[T]) -> "DeleteQuery[T]":
        from bqlib.query.builder import DeleteQuery
        return DeleteQuery(cls)

    @classmethod
    async def get_by_pk(cls: type[T], client: "QueryTransport", pk: Any) -> T:
        """Fetch the single record whose primary key equals ``pk``

        Raises:
            CardinalityError: If no row or more than one row matches
        """
        result = await (
            cls.select()
            .with_client(client)
            .add_where_eq(cls.pk_field_name(), pk)
            .build_query()
            .run()
        )
        rows = result.expect_with_data(f"get_by_pk on {cls.table_name()} returned no row data")
        if not rows:
            raise CardinalityError(
                f"No entry found for {cls.pk_db_name()} = {pk}",
                {"table_name": cls.table_name(), "pk": pk, "found": 0},
            )
        if len(rows) > 1:
            raise CardinalityError(
                f"Found {len(rows)} entries for {cls.pk_db_name()} = {pk}, expected one",
                {"table_name": cls.table_name(), "pk": pk, "found": len(rows)},
            )
        return rows[0]

    async def reload(self) -> None:
        """Replace the field values with the stored row for this primary key

        Ignored fields keep their current values.
        """
        fresh = await self.get_by_pk(self.get_client(), self.pk_value())
        descriptor = self.descriptor()
        for f in descriptor.fields:
            if f.is_ignored or f.is_client:
                continue
            setattr(self, f.local_name, getattr(fresh, f.local_name))

    async def save(self) -> None:
        """Write every field of this record to the row with its primary key"""
        result = await self.update().with_client(self.get_client()).set_data(self).build_query().run()
        result.expect_without_data(f"Update of {self.table_name()} should not return rows")

    async def upsert(self) -> None:
        """Update the stored row when it exists, insert this record otherwise"""
        probe = copy.copy(self)
        try:
            await probe.reload()
        except BigQueryError as e:
            logger.debug(
                "upsert: no existing row for %s = %r (%s), inserting",
                self.pk_db_name(), self.pk_value(), e,
            )
            result = await self.insert().with_client(self.get_client()).set_data(self).build_query().run()
            result.expect_without_data(f"Insert into {self.table_name()} should not return rows")
            return
        await self.save()

    def update_from(self: T, other: T) -> None:
        """Copy every query field from another record of the same type; nothing is persisted"""
        if not isinstance(other, type(self)):
            raise TypeError(
                f"update_from expects a {type(self).__name__}, got {type(other).__name__}"
            )
        for local_name in self.query_fields(include_pk=True):
            self.set_field(local_name, other.get_field(local_name))


@overload
def bigquery_table(cls: type[T]) -> type[T]: ...


@overload
def bigquery_table(
    cls: None = None, *, db_name: Optional[str] = None
) -> Callable[[type[T]], type[T]]: ...


def bigquery_table(
    cls: Optional[type[T]] = None, *, db_name: Optional[str] = None
) -> Union[type[T], Callable[[type[T]], type[T]]]:
    """Turn a class into a table record

    The class is made a dataclass (unless it already is one) and its table
    descriptor is derived from the field annotations. ``db_name`` overrides
    the table name, which otherwise is the class name.

    Raises:
        ConfigError: If the annotations do not describe a valid table
    """
    def wrap(record_cls: type[T]) -> type[T]:
        if not issubclass(record_cls, BigQueryTable):
            raise ConfigError(f"{record_cls.__name__} must subclass BigQueryTable")
        if "__dataclass_fields__" not in record_cls.__dict__:
            record_cls = dataclasses.dataclass(record_cls)
        record_cls.__table__ = build_descriptor(record_cls, db_name=db_name)
        return record_cls

    if cls is None:
        return wrap
    return wrap(cls)
