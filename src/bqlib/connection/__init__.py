"""Connection module exports."""

from .base import QueryTransport, HttpResponse
from .client import BigqueryClient, BIGQUERY_SCOPES

__all__ = [
    "QueryTransport",
    "HttpResponse",
    "BigqueryClient",
    "BIGQUERY_SCOPES",
]
