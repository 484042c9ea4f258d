"""Interface the query executor expects from a transport client"""

from typing import Optional, Protocol, runtime_checkable

from bqlib.transport.models import QueryRequest, QueryResponse


class HttpResponse(Protocol):
    """The parts of an HTTP response the executor looks at"""

    status_code: int

    @property
    def text(self) -> Optional[str]:
        ...


@runtime_checkable
class QueryTransport(Protocol):
    """Anything that can run a jobs.query request for one dataset

    Implementations must allow many requests in flight at once; the
    executor never serializes calls and sets no timeouts or retries itself.
    """

    @property
    def project_id(self) -> str:
        ...

    @property
    def dataset_id(self) -> str:
        ...

    async def execute_query(self, request: QueryRequest) -> tuple[HttpResponse, QueryResponse]:
        """Run the request and return the raw HTTP response with the parsed body"""
        ...
