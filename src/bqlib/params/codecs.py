"""Conversion between Python values and BigQuery query parameter values

Each supported host type has a codec that knows the BigQuery type name used
when declaring a query parameter, how to encode a value into the JSON form
sent with the query, and how to decode the JSON form found in result rows.
"""

import logging
import math
import sys
import types
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Optional, Union, get_args, get_origin

import numpy as np

from bqlib.exceptions import ConfigError, ConversionError

logger = logging.getLogger(__name__)

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

if sys.version_info >= (3, 10):
    _UNION_TYPES: tuple[Any, ...] = (Union, types.UnionType)
else:
    _UNION_TYPES = (Union,)


class ValueCodec(ABC):
    """Encode and decode one host type for use as a query parameter"""

    warehouse_type: ClassVar[str]
    python_type: ClassVar[type] = object
    nullable: ClassVar[bool] = False

    @abstractmethod
    def to_param(self, value: Any) -> Any:
        """Convert a host value to its JSON parameter representation"""

    @abstractmethod
    def from_param(self, value: Any) -> Any:
        """Convert a JSON value from a result row or parameter to the host type"""

    def _require(self, value: Any) -> Any:
        if value is None:
            raise ConversionError(
                f"Value is Null but a {self.warehouse_type} value is required"
            )
        return value

    def _reject(self, value: Any, direction: str = "from") -> ConversionError:
        return ConversionError(
            f"Cannot convert {value!r} ({type(value).__name__}) {direction} {self.warehouse_type}",
            {"value": repr(value), "warehouse_type": self.warehouse_type},
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.warehouse_type})"

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self))


class BoolCodec(ValueCodec):
    """BOOL values travel as the strings TRUE and FALSE"""

    warehouse_type = "BOOL"
    python_type = bool

    _TOKENS = {"TRUE": True, "true": True, "FALSE": False, "false": False}

    def to_param(self, value: Any) -> str:
        if not isinstance(value, (bool, np.bool_)):
            raise self._reject(value, "to")
        return "TRUE" if value else "FALSE"

    def from_param(self, value: Any) -> bool:
        self._require(value)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            try:
                return self._TOKENS[value]
            except KeyError:
                raise ConversionError(f"Invalid value for bool: '{value}'") from None
        raise self._reject(value)


class IntCodec(ValueCodec):
    """INT64 values travel as decimal strings"""

    warehouse_type = "INT64"
    python_type = int
    min_value: ClassVar[int] = -(2**63)
    max_value: ClassVar[int] = 2**63 - 1

    def _check_range(self, value: int) -> int:
        if not self.min_value <= value <= self.max_value:
            raise ConversionError(
                f"Value {value} is out of range for {self.__class__.__name__} "
                f"[{self.min_value}, {self.max_value}]"
            )
        return value

    def to_param(self, value: Any) -> str:
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
            raise self._reject(value, "to")
        return str(self._check_range(int(value)))

    def from_param(self, value: Any) -> int:
        self._require(value)
        if isinstance(value, bool):
            raise self._reject(value)
        if isinstance(value, int):
            return self._check_range(value)
        if isinstance(value, float) and value.is_integer():
            return self._check_range(int(value))
        if isinstance(value, str):
            try:
                return self._check_range(int(value.strip()))
            except ValueError:
                raise self._reject(value) from None
        raise self._reject(value)


class Int32Codec(IntCodec):
    """32-bit integers share the INT64 wire type but are range checked"""

    python_type = np.int32
    min_value = -(2**31)
    max_value = 2**31 - 1

    def from_param(self, value: Any) -> Any:
        return np.int32(super().from_param(value))


class Int64Codec(IntCodec):
    """numpy int64 values; decoded back to numpy scalars"""

    python_type = np.int64

    def from_param(self, value: Any) -> Any:
        return np.int64(super().from_param(value))


class FloatCodec(ValueCodec):
    """DOUBLE values travel as JSON numbers"""

    warehouse_type = "DOUBLE"
    python_type = float

    def to_param(self, value: Any) -> Any:
        if isinstance(value, (bool, np.bool_)) or not isinstance(
            value, (int, float, np.integer, np.floating)
        ):
            raise self._reject(value, "to")
        value = float(value)
        # JSON has no literal for these, BigQuery accepts the names
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return value

    def from_param(self, value: Any) -> float:
        self._require(value)
        if isinstance(value, bool):
            raise self._reject(value)
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                raise self._reject(value) from None
        raise self._reject(value)


class StringCodec(ValueCodec):
    """STRING values travel as JSON strings"""

    warehouse_type = "STRING"
    python_type = str

    def to_param(self, value: Any) -> str:
        if not isinstance(value, str):
            raise self._reject(value, "to")
        return value

    def from_param(self, value: Any) -> str:
        self._require(value)
        if not isinstance(value, str):
            raise self._reject(value)
        return value


class DatetimeCodec(ValueCodec):
    """DATETIME values travel as 'YYYY-MM-DD HH:MM:SS' in UTC

    Sub-second precision is dropped in both directions. Naive datetimes are
    taken to already be in UTC. Decoding also accepts the RFC 3339 'T'
    separator, a trailing 'Z' and the epoch-seconds floats BigQuery returns
    for TIMESTAMP columns.
    """

    warehouse_type = "DATETIME"
    python_type = datetime

    def to_param(self, value: Any) -> str:
        if not isinstance(value, datetime):
            raise self._reject(value, "to")
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        encoded = value.strftime(DATETIME_FORMAT)
        logger.debug("DATETIME to_param: %r -> %r", value, encoded)
        return encoded

    def from_param(self, value: Any) -> datetime:
        self._require(value)
        if isinstance(value, datetime):
            return self._to_utc(value)
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise self._reject(value)
        if isinstance(value, (int, float)):
            return self._from_epoch(value)

        text = value.strip().replace("T", " ")
        if text.endswith("Z"):
            text = text[:-1]
        elif text.endswith("+00:00"):
            text = text[:-6]
        text = text.split(".", 1)[0] if " " in text else text

        try:
            parsed = datetime.strptime(text, DATETIME_FORMAT)
        except ValueError:
            try:
                return self._from_epoch(float(value))
            except ValueError:
                raise ConversionError(
                    f"Invalid value for DATETIME: '{value}', expected {DATETIME_FORMAT}"
                ) from None
        decoded = parsed.replace(tzinfo=timezone.utc)
        logger.debug("DATETIME from_param: %r -> %r", value, decoded)
        return decoded

    @staticmethod
    def _to_utc(value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(microsecond=0)

    @staticmethod
    def _from_epoch(seconds: float) -> datetime:
        if math.isnan(seconds) or math.isinf(seconds):
            raise ConversionError(f"Invalid epoch value for DATETIME: {seconds!r}")
        try:
            return datetime.fromtimestamp(int(seconds), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise ConversionError(f"Invalid epoch value for DATETIME: {seconds!r}") from None


class OptionalCodec(ValueCodec):
    """Wrap another codec so that None round-trips as JSON null"""

    nullable = True

    def __init__(self, inner: ValueCodec):
        self.inner = inner

    @property
    def warehouse_type(self) -> str:  # type: ignore[override]
        return self.inner.warehouse_type

    @property
    def python_type(self) -> type:  # type: ignore[override]
        return self.inner.python_type

    def to_param(self, value: Any) -> Any:
        if value is None:
            return None
        return self.inner.to_param(value)

    def from_param(self, value: Any) -> Any:
        if value is None:
            return None
        return self.inner.from_param(value)

    def __repr__(self) -> str:
        return f"OptionalCodec({self.inner!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, OptionalCodec) and self.inner == other.inner

    def __hash__(self) -> int:
        return hash((OptionalCodec, self.inner))


_REGISTRY: dict[type, ValueCodec] = {
    bool: BoolCodec(),
    np.bool_: BoolCodec(),
    int: IntCodec(),
    np.int32: Int32Codec(),
    np.int64: Int64Codec(),
    float: FloatCodec(),
    np.float64: FloatCodec(),
    str: StringCodec(),
    datetime: DatetimeCodec(),
}


def register_codec(py_type: type, codec: ValueCodec) -> None:
    """Register (or replace) the codec used for a host type"""
    if not isinstance(codec, ValueCodec):
        raise TypeError(f"codec must be a ValueCodec instance, got {type(codec).__name__}")
    _REGISTRY[py_type] = codec


def codec_for(annotation: Any) -> ValueCodec:
    """Resolve a type annotation to its codec

    ``Optional[T]`` (or ``T | None``) resolves to an OptionalCodec around the
    codec for ``T``; ``Annotated[...]`` metadata is ignored.

    Raises:
        ConfigError: If no codec is registered for the type
    """
    origin = get_origin(annotation)
    if origin is Annotated:
        return codec_for(get_args(annotation)[0])

    if origin in _UNION_TYPES:
        args = get_args(annotation)
        non_null = [arg for arg in args if arg is not type(None)]
        if len(non_null) == 1 and len(args) == 2:
            return OptionalCodec(codec_for(non_null[0]))
        raise ConfigError(
            f"Unsupported union type {annotation!r}: only Optional[T] is supported"
        )

    if isinstance(annotation, type):
        if annotation in _REGISTRY:
            return _REGISTRY[annotation]
        for base in annotation.__mro__[1:]:
            if base in _REGISTRY:
                return _REGISTRY[base]

    raise ConfigError(f"No parameter codec registered for type {annotation!r}")


def codec_for_value(value: Any) -> ValueCodec:
    """Resolve the codec for a runtime value"""
    if value is None:
        raise ConversionError("Cannot infer a parameter type from None")
    return codec_for(type(value))

