"""Table descriptors derived from annotated record classes

A descriptor is computed once, when the record class is decorated, and
holds everything the query builder needs to know about the table: its name,
its fields in a fixed order, which field is the primary key and which one
carries the client. Field order is lexicographic by local name and is shared
by SELECT column emission and result row decoding.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Annotated, Any, Optional, get_args, get_origin, get_type_hints

from bqlib.exceptions import ConfigError, ConversionError, UnknownFieldError
from bqlib.params import ValueCodec, codec_for, param_name, make_parameter
from bqlib.transport.models import QueryParameter
from bqlib.utils.identifiers import is_valid_column_name, is_valid_table_name

from .annotations import Client, DbIgnore, DbName, PrimaryKey, Required

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldDescriptor:
    """Mapping of one record attribute to its column"""

    local_name: str
    db_name: str
    declared_type: Any
    codec: Optional[ValueCodec] = None
    required: bool = False
    is_pk: bool = False
    is_client: bool = False
    is_ignored: bool = False

    @property
    def is_query_field(self) -> bool:
        """Whether the field takes part in emitted SQL"""
        return not (self.is_client or self.is_ignored)

    @property
    def param_name(self) -> str:
        """Name of the parameter carrying this field's value"""
        return param_name(self.db_name)

    @property
    def column_codec(self) -> ValueCodec:
        """Codec of a query field

        Raises:
            ConfigError: If the field is the client or an ignored field
        """
        if self.codec is None:
            raise ConfigError(f"Field '{self.local_name}' is not stored in a column")
        return self.codec


@dataclass(frozen=True)
class TableDescriptor:
    """Everything known about a record class's table"""

    record_type: type
    table_name: str
    fields: tuple[FieldDescriptor, ...]
    primary_key: FieldDescriptor
    client_field: FieldDescriptor

    @property
    def pk_field_name(self) -> str:
        return self.primary_key.local_name

    @property
    def pk_db_name(self) -> str:
        return self.primary_key.db_name

    @property
    def columns(self) -> list[FieldDescriptor]:
        """Query fields (primary key included) in column order"""
        return [f for f in self.fields if f.is_query_field]

    def query_fields(self, include_pk: bool = True) -> dict[str, str]:
        """Local name to db name for every field that appears in SQL"""
        return {
            f.local_name: f.db_name
            for f in self.columns
            if include_pk or not f.is_pk
        }

    def sorted_query_fields(self) -> list[tuple[str, str]]:
        """(local name, db name) pairs in the order columns are emitted and decoded"""
        return sorted(self.query_fields(include_pk=True).items())

    def field(self, local_name: str) -> FieldDescriptor:
        """Look up a query field by local name"""
        for f in self.fields:
            if f.local_name == local_name and f.is_query_field:
                return f
        raise UnknownFieldError(
            local_name, self.table_name, list(self.query_fields(include_pk=True))
        )

    def field_db_name(self, local_name: str) -> str:
        return self.field(local_name).db_name

    def get_field(self, instance: Any, local_name: str) -> Any:
        """Read a field from a record as its JSON parameter value"""
        f = self.field(local_name)
        return f.column_codec.to_param(getattr(instance, f.local_name))

    def set_field(self, instance: Any, local_name: str, value: Any) -> None:
        """Write a JSON value into a record field through the field's codec"""
        f = self.field(local_name)
        try:
            decoded = f.column_codec.from_param(value)
        except ConversionError as e:
            raise ConversionError(
                f"Error while setting field '{local_name}' of {self.table_name}: {e.message}",
                {**e.context, "field_name": local_name},
            ) from e
        setattr(instance, f.local_name, decoded)

    def param_for_field(self, instance: Any, local_name: str) -> Optional[QueryParameter]:
        """Parameter named after the field's column, or None when the value is null"""
        f = self.field(local_name)
        return make_parameter(f.param_name, getattr(instance, f.local_name), f.column_codec)

    def all_params(self, instance: Any) -> list[Optional[QueryParameter]]:
        """One parameter slot per query field in column order"""
        return [self.param_for_field(instance, f.local_name) for f in self.columns]

    def new_from_row(self, client: Any, row: dict[str, Any]) -> Any:
        """Instantiate the record from a row keyed by db name"""
        values: dict[str, Any] = {self.client_field.local_name: client}
        for f in self.columns:
            raw = row.get(f.db_name)
            try:
                values[f.local_name] = f.column_codec.from_param(raw)
            except ConversionError as e:
                raise ConversionError(
                    f"Error while reading column '{f.db_name}' of {self.table_name}: {e.message}",
                    {**e.context, "column": f.db_name},
                ) from e
        init_values = {k: v for k, v in values.items() if self._init_field(k)}
        instance = self.record_type(**init_values)
        for name, value in values.items():
            if name not in init_values:
                setattr(instance, name, value)
        return instance

    def _init_field(self, local_name: str) -> bool:
        dc_field = self.record_type.__dataclass_fields__.get(local_name)
        return dc_field is None or dc_field.init


def _split_annotation(annotation: Any) -> tuple[Any, list[Any]]:
    """Separate Annotated metadata from the underlying type"""
    if get_origin(annotation) is Annotated:
        base, *extras = get_args(annotation)
        return base, list(extras)
    return annotation, []


def _has_marker(extras: list[Any], marker: type) -> bool:
    return any(isinstance(e, marker) or e is marker for e in extras)


def _has_default(dc_field: "dataclasses.Field[Any]") -> bool:
    return (
        dc_field.default is not dataclasses.MISSING
        or dc_field.default_factory is not dataclasses.MISSING
    )


def build_descriptor(cls: type, db_name: Optional[str] = None) -> TableDescriptor:
    """Reflect over a dataclass record and build its table descriptor

    Raises:
        ConfigError: If the record does not declare exactly one client and one
            primary key field, repeats a column name, or uses an unsupported type
    """
    if not dataclasses.is_dataclass(cls):
        raise ConfigError(f"{cls.__name__} must be a dataclass")

    try:
        hints = get_type_hints(cls, include_extras=True)
    except NameError as e:
        raise ConfigError(
            f"Cannot resolve type annotations of {cls.__name__}: {e}. "
            "Define referenced types at module level."
        ) from e

    table_name = db_name if db_name is not None else cls.__name__
    if not is_valid_table_name(table_name):
        raise ConfigError(f"Invalid table name for {cls.__name__}: {table_name!r}")

    fields: list[FieldDescriptor] = []
    for dc_field in dataclasses.fields(cls):
        annotation = hints.get(dc_field.name, dc_field.type)
        declared_type, extras = _split_annotation(annotation)

        names = [e.name for e in extras if isinstance(e, DbName)]
        if len(names) > 1:
            raise ConfigError(f"Field '{cls.__name__}.{dc_field.name}' has several DbName markers")
        column = names[0] if names else dc_field.name

        is_client = _has_marker(extras, Client)
        is_ignored = _has_marker(extras, DbIgnore)
        is_pk = _has_marker(extras, PrimaryKey)

        if is_pk and (is_client or is_ignored):
            raise ConfigError(
                f"Primary key field '{cls.__name__}.{dc_field.name}' cannot be a client or ignored field"
            )
        if is_ignored and not _has_default(dc_field) and dc_field.init:
            raise ConfigError(
                f"Ignored field '{cls.__name__}.{dc_field.name}' needs a default value"
            )

        codec: Optional[ValueCodec] = None
        if not (is_client or is_ignored):
            if not is_valid_column_name(column):
                raise ConfigError(f"Invalid column name for '{cls.__name__}.{dc_field.name}': {column!r}")
            codec = codec_for(declared_type)

        fields.append(
            FieldDescriptor(
                local_name=dc_field.name,
                db_name=column,
                declared_type=declared_type,
                codec=codec,
                required=_has_marker(extras, Required),
                is_pk=is_pk,
                is_client=is_client,
                is_ignored=is_ignored,
            )
        )

    fields.sort(key=lambda f: f.local_name)

    pk_fields = [f for f in fields if f.is_pk]
    if len(pk_fields) != 1:
        raise ConfigError(
            f"Exactly one primary key field must be specified on {cls.__name__} "
            f"(found {len(pk_fields)})"
        )
    client_fields = [f for f in fields if f.is_client]
    if len(client_fields) != 1:
        raise ConfigError(
            f"Exactly one client field must be specified on {cls.__name__} "
            f"(found {len(client_fields)})"
        )

    seen: dict[str, str] = {}
    for f in fields:
        if f.db_name in seen:
            raise ConfigError(
                f"Duplicate column name '{f.db_name}' on {cls.__name__} "
                f"(fields '{seen[f.db_name]}' and '{f.local_name}')"
            )
        seen[f.db_name] = f.local_name

    descriptor = TableDescriptor(
        record_type=cls,
        table_name=table_name,
        fields=tuple(fields),
        primary_key=pk_fields[0],
        client_field=client_fields[0],
    )
    logger.debug(
        "Built table descriptor for %s: table=%s columns=%s",
        cls.__name__, table_name, descriptor.sorted_query_fields(),
    )
    return descriptor
