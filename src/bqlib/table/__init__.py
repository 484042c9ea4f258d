"""Record classes bound to BigQuery tables"""

from .annotations import Client, PrimaryKey, DbName, Required, DbIgnore
from .descriptor import FieldDescriptor, TableDescriptor, build_descriptor
from .record import BigQueryTable, bigquery_table

__all__ = [
    "Client",
    "PrimaryKey",
    "DbName",
    "Required",
    "DbIgnore",
    "FieldDescriptor",
    "TableDescriptor",
    "build_descriptor",
    "BigQueryTable",
    "bigquery_table",
]
