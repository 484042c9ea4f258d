"""Wire models for the BigQuery REST query endpoint"""

from .models import (
    QueryParameter,
    QueryParameterType,
    QueryParameterValue,
    QueryRequest,
    QueryResponse,
    TableCell,
    TableRow,
    JobReference,
    ErrorProto,
)

__all__ = [
    "QueryParameter",
    "QueryParameterType",
    "QueryParameterValue",
    "QueryRequest",
    "QueryResponse",
    "TableCell",
    "TableRow",
    "JobReference",
    "ErrorProto",
]
