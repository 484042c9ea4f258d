"""Pytest configuration and shared fixtures for unit tests."""

import json
from collections import deque
from typing import Annotated, Any, Optional
from unittest.mock import Mock

import pytest

from bqlib.table import BigQueryTable, Client, DbIgnore, DbName, PrimaryKey, bigquery_table
from bqlib.transport.models import QueryRequest, QueryResponse


class FakeTransport:
    """In-memory stand-in for BigqueryClient that replays queued responses"""

    def __init__(self, project_id: str = "P", dataset_id: str = "D"):
        self._project_id = project_id
        self._dataset_id = dataset_id
        self.requests: list[QueryRequest] = []
        self._responses: deque = deque()

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def dataset_id(self) -> str:
        return self._dataset_id

    def queue(self, body: Optional[dict] = None, status_code: int = 200) -> None:
        """Queue a raw response body with the given HTTP status"""
        body = body if body is not None else {"jobComplete": True}
        http_response = Mock(status_code=status_code, text=json.dumps(body))
        parsed = QueryResponse.model_validate(body) if status_code == 200 else QueryResponse()
        self._responses.append((http_response, parsed))

    def queue_rows(self, rows: list[list[Any]], **extra: Any) -> None:
        """Queue a SELECT response carrying the given positional rows"""
        body: dict[str, Any] = {
            "jobComplete": True,
            "totalRows": str(len(rows)),
            "jobReference": {"projectId": self._project_id, "jobId": "job_1"},
        }
        if rows:
            body["rows"] = [{"f": [{"v": v} for v in row]} for row in rows]
        body.update(extra)
        self.queue(body)

    def queue_dml(self, affected_rows: int = 1) -> None:
        """Queue the response of an INSERT, UPDATE or DELETE"""
        self.queue({
            "jobComplete": True,
            "totalRows": "0",
            "numDmlAffectedRows": str(affected_rows),
        })

    async def execute_query(self, request: QueryRequest):
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"No response queued for query: {request.query}")
        return self._responses.popleft()


@bigquery_table(db_name="Infos")
class DbInfos(BigQueryTable):
    """Record used across the unit tests"""

    client: Annotated[Optional[Any], Client()] = None
    row_id: Annotated[int, PrimaryKey(), DbName("Id")] = 0
    info1: Optional[str] = None
    info2: Annotated[Optional[str], DbName("info")] = None
    info3: Optional[str] = None
    info4i: Optional[int] = None
    info4b: Annotated[Optional[bool], DbName("yes")] = None
    note: Annotated[str, DbIgnore()] = ""


# Row values in SELECT column order: info1, info, info3, yes, info4i, Id
INFOS_ROW = ["a", "b", "c", "true", "4", "1"]


@pytest.fixture
def transport() -> FakeTransport:
    """Fake transport bound to project P and dataset D."""
    return FakeTransport()


@pytest.fixture
def infos() -> type[DbInfos]:
    """The DbInfos record class."""
    return DbInfos


@pytest.fixture
def infos_row() -> list[Any]:
    """A result row for DbInfos in column order."""
    return list(INFOS_ROW)


@pytest.fixture
def sample_entry(transport: FakeTransport) -> DbInfos:
    """A DbInfos record attached to the fake transport."""
    return DbInfos(
        client=transport,
        row_id=1,
        info1="a",
        info2=None,
        info3="c",
        info4i=1,
        info4b=True,
    )
