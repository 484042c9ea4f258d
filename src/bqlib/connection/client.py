"""BigQuery REST client with profile support."""

import asyncio
from pathlib import Path
from typing import Any, Optional, Union

import google.auth
import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from bqlib.config import ConnectionProfile, load_profile
from bqlib.exceptions import TransportError
from bqlib.transport.models import QueryRequest, QueryResponse
from bqlib.utils.identifiers import is_valid_dataset_id, is_valid_project_id

from .base import HttpResponse

BIGQUERY_SCOPES = ["https://www.googleapis.com/auth/bigquery"]
API_ROOT = "https://bigquery.googleapis.com/bigquery/v2"


class BigqueryClient:
    """
    Client for the BigQuery v2 ``jobs.query`` REST endpoint.

    The client is bound to one project and dataset; table records build their
    ``project.dataset.table`` identifiers from it. The authorized HTTP session
    is created lazily on the first query, so constructing a client never
    touches the network. Requests run in a worker thread, so the client can
    be shared by many concurrent tasks.

    Args:
        project_id: Project that owns the dataset and is billed for queries
        dataset_id: Dataset holding the tables
        credentials: google-auth credentials; application default credentials when None
        session: Pre-built authorized session (takes precedence over credentials)
        location: Optional processing location sent with every query
        timeout: Seconds to wait for the HTTP response

    Example:
        >>> client = BigqueryClient.from_profile("dev")
        >>> entry = await DbInfos.get_by_pk(client, 42)

        >>> client = BigqueryClient.from_service_account(
        ...     "my-project", "analytics", "~/.bqlib/service_account.json"
        ... )
    """

    def __init__(
        self,
        project_id: str,
        dataset_id: str,
        credentials: Optional[Any] = None,
        session: Optional[Any] = None,
        location: Optional[str] = None,
        timeout: float = 60.0,
    ) -> None:
        if not is_valid_project_id(project_id):
            raise ValueError(f"Invalid project id: {project_id!r}")
        if not is_valid_dataset_id(dataset_id):
            raise ValueError(f"Invalid dataset id: {dataset_id!r}")

        self._project_id = project_id
        self._dataset_id = dataset_id
        self._credentials = credentials
        self._session = session
        self._owns_session = session is None
        self.location = location
        self.timeout = timeout

    @classmethod
    def from_service_account(
        cls,
        project_id: str,
        dataset_id: str,
        service_account_path: Union[str, Path],
        **kwargs: Any,
    ) -> "BigqueryClient":
        """Create a client authenticated with a service-account key file"""
        key_path = Path(service_account_path).expanduser()
        if not key_path.exists():
            raise FileNotFoundError(f"Service account key file not found: {key_path}")

        try:
            credentials = service_account.Credentials.from_service_account_file(
                str(key_path), scopes=BIGQUERY_SCOPES
            )
        except (ValueError, GoogleAuthError) as e:
            raise TransportError(
                f"Failed to read service account key from {key_path}: {e}"
            ) from e
        return cls(project_id, dataset_id, credentials=credentials, **kwargs)

    @classmethod
    def from_default_credentials(
        cls, project_id: str, dataset_id: str, **kwargs: Any
    ) -> "BigqueryClient":
        """Create a client that uses application default credentials on first use"""
        return cls(project_id, dataset_id, **kwargs)

    @classmethod
    def from_profile(
        cls, profile: str, path: Optional[Union[str, Path]] = None, **overrides: Any
    ) -> "BigqueryClient":
        """
        Create a client from a connections.toml profile.

        Args:
            profile: Name of the profile to load
            path: Optional explicit path to connections.toml
            **overrides: Override any profile setting
        """
        cfg = load_profile(profile, path)
        cfg.update(overrides)
        settings = ConnectionProfile.model_validate(cfg)

        options: dict[str, Any] = {"location": settings.location, "timeout": settings.timeout}
        if settings.service_account_path is not None:
            return cls.from_service_account(
                settings.project_id,
                settings.dataset_id,
                settings.service_account_path,
                **options,
            )
        return cls.from_default_credentials(settings.project_id, settings.dataset_id, **options)

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def dataset_id(self) -> str:
        return self._dataset_id

    @property
    def session(self) -> Any:
        """Authorized HTTP session, created on first access"""
        if self._session is None:
            credentials = self._credentials
            if credentials is None:
                try:
                    credentials, _ = google.auth.default(scopes=BIGQUERY_SCOPES)
                except GoogleAuthError as e:
                    raise TransportError(
                        f"No application default credentials available: {e}"
                    ) from e
                self._credentials = credentials
            self._session = AuthorizedSession(credentials)
        return self._session

    def query_url(self) -> str:
        return f"{API_ROOT}/projects/{self._project_id}/queries"

    async def execute_query(self, request: QueryRequest) -> tuple[HttpResponse, QueryResponse]:
        """
        Run a jobs.query request.

        Returns:
            Tuple of (HTTP response, parsed query response). The body is only
            parsed for a 200 status; otherwise an empty QueryResponse is returned
            and the caller decides how to report the status.

        Raises:
            TransportError: If the HTTP request or authentication fails
        """
        body = request.to_api()
        if self.location and "location" not in body:
            body["location"] = self.location
        if "timeoutMs" not in body:
            body["timeoutMs"] = int(self.timeout * 1000)

        response = await asyncio.to_thread(self._post, body)
        if response.status_code != 200:
            return response, QueryResponse()
        return response, QueryResponse.model_validate(response.json())

    def _post(self, body: dict[str, Any]) -> Any:
        try:
            return self.session.post(self.query_url(), json=body, timeout=self.timeout)
        except (requests.RequestException, GoogleAuthError) as e:
            raise TransportError(f"Query request to {self.query_url()} failed: {e}") from e

    def close(self) -> None:
        """Close the HTTP session if this client created it"""
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "BigqueryClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        """String representation of the client."""
        status = "connected" if self._session is not None else "not connected"
        return (
            f"BigqueryClient(project_id='{self._project_id}', "
            f"dataset_id='{self._dataset_id}', {status})"
        )
