"""Value codecs and query parameter construction"""

from typing import Any, Optional

from bqlib.transport.models import QueryParameter

from .codecs import (
    ValueCodec,
    BoolCodec,
    IntCodec,
    Int32Codec,
    Int64Codec,
    FloatCodec,
    StringCodec,
    DatetimeCodec,
    OptionalCodec,
    codec_for,
    codec_for_value,
    register_codec,
)

PARAM_PREFIX = "__PARAM_"


def param_name(suffix: Any) -> str:
    """Name of a query parameter for an index or a column name"""
    return f"{PARAM_PREFIX}{suffix}"


def make_parameter(
    name: str, value: Any, codec: Optional[ValueCodec] = None
) -> Optional[QueryParameter]:
    """Build a named query parameter, or None when the value encodes to null"""
    if codec is None:
        if value is None:
            return None
        codec = codec_for_value(value)
    encoded = codec.to_param(value)
    if encoded is None:
        return None
    return QueryParameter.create(name, codec.warehouse_type, encoded)


__all__ = [
    "ValueCodec",
    "BoolCodec",
    "IntCodec",
    "Int32Codec",
    "Int64Codec",
    "FloatCodec",
    "StringCodec",
    "DatetimeCodec",
    "OptionalCodec",
    "codec_for",
    "codec_for_value",
    "register_codec",
    "PARAM_PREFIX",
    "param_name",
    "make_parameter",
]
