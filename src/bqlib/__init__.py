"""
bqlib - typed records for BigQuery tables

Code is organized in layers
- config/ and connection/ as the interface to the BigQuery REST API
- params/ and transport/ convert values and requests to their wire form
- table/ and query/ map annotated dataclasses to parameterized SQL
"""

# Layer 1: Core connectivity
from bqlib.config import load_profile, list_profiles, ConnectionProfile
from bqlib.connection import BigqueryClient, QueryTransport

# Layer 2: Values and queries
from bqlib.params import ValueCodec, codec_for, register_codec
from bqlib.query import (
    OrderDirection,
    SelectQuery,
    InsertQuery,
    UpdateQuery,
    DeleteQuery,
    Executor,
    QueryResult,
    WithRowData,
    WithoutRowData,
)

# Layer 3: Records
from bqlib.table import (
    BigQueryTable,
    bigquery_table,
    Client,
    PrimaryKey,
    DbName,
    Required,
    DbIgnore,
)

from bqlib.exceptions import (
    BigQueryError,
    ConfigError,
    ConversionError,
    UnknownFieldError,
    BuildError,
    TransportError,
    BadStatusError,
    CardinalityError,
    ResultShapeError,
)

__version__ = "0.1.0"
__all__ = [
    # Layer 1: Configuration & Connection
    "load_profile",
    "list_profiles",
    "ConnectionProfile",
    "BigqueryClient",
    "QueryTransport",
    # Layer 2: Values and queries
    "ValueCodec",
    "codec_for",
    "register_codec",
    "OrderDirection",
    "SelectQuery",
    "InsertQuery",
    "UpdateQuery",
    "DeleteQuery",
    "Executor",
    "QueryResult",
    "WithRowData",
    "WithoutRowData",
    # Layer 3: Records
    "BigQueryTable",
    "bigquery_table",
    "Client",
    "PrimaryKey",
    "DbName",
    "Required",
    "DbIgnore",
    # Errors
    "BigQueryError",
    "ConfigError",
    "ConversionError",
    "UnknownFieldError",
    "BuildError",
    "TransportError",
    "BadStatusError",
    "CardinalityError",
    "ResultShapeError",
]
