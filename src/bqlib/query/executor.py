"""Run built queries through a transport and decode the results"""

import logging
import warnings
from typing import TYPE_CHECKING, Any, cast

from bqlib.exceptions import BadStatusError, ResultShapeError
from bqlib.transport.models import QueryRequest, QueryResponse, TableRow

from .result import QueryResult, WithoutRowData, WithRowData

if TYPE_CHECKING:
    from bqlib.connection.base import QueryTransport

    from .builder import QueryBuilder

logger = logging.getLogger(__name__)


class Executor:
    """Execute queries against BigQuery through a client"""

    def __init__(self, client: "QueryTransport"):
        self.client = client

    async def run(self, request: QueryRequest) -> QueryResponse:
        """Send a request and return the response, raising on a non-200 status"""
        logger.debug("query_request: %r", request)
        http_response, query_response = await self.client.execute_query(request)
        if http_response.status_code != 200:
            raise BadStatusError(http_response.status_code, http_response.text)
        if query_response.job_complete is False:
            raise ResultShapeError(
                "The query did not complete before the request timed out",
                {"job_id": query_response.job_id},
            )
        return query_response

    async def run_query(self, builder: "QueryBuilder[Any]") -> QueryResult[Any]:
        """Run a built query and classify the response by statement kind"""
        from .builder import QueryKind, SelectQuery

        sql = builder.get_query_string()
        params = builder.params
        logger.debug("Running query: %s params: %r", sql, params)
        response = await self.run(builder.query_request())
        logger.debug("total rows returned: %s", response.total_rows or 0)

        if builder.kind is not QueryKind.SELECT:
            return WithoutRowData(
                sql=sql,
                params=params,
                total_rows=response.total_rows,
                job_id=response.job_id,
                affected_rows=response.num_dml_affected_rows,
            )

        columns = cast(SelectQuery[Any], builder).columns
        rows = response.rows or []
        if response.page_token or (
            response.total_rows is not None and response.total_rows > len(rows)
        ):
            warnings.warn(
                f"Query on {builder.table.table_name()} returned {response.total_rows} rows "
                f"but only the first {len(rows)} were fetched; pagination is not supported. "
                "Narrow the query or use set_limit().",
                UserWarning,
                stacklevel=3,
            )

        records = [
            decode_row(builder.table, self.client, columns, row) for row in rows
        ]
        logger.debug("total rows parsed: %d", len(records))
        return WithRowData(
            sql=sql,
            params=params,
            total_rows=response.total_rows,
            job_id=response.job_id,
            rows=records,
            columns=[local_name for local_name, _ in columns],
        )


def decode_row(
    table: Any,
    client: "QueryTransport",
    columns: list[tuple[str, str]],
    row: TableRow,
) -> Any:
    """Zip a positional result row with the column list and build a record"""
    cells = row.f or []
    if len(cells) > len(columns):
        raise ResultShapeError(
            f"Result row has {len(cells)} cells but {len(columns)} columns were selected"
        )
    row_data: dict[str, Any] = {}
    for i, (_, db_name) in enumerate(columns):
        row_data[db_name] = cells[i].v if i < len(cells) else None
    return table.new_from_row(client, row_data)
