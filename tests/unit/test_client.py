"""Unit tests for the BigQuery REST client."""

from unittest.mock import Mock, patch

import pytest
import requests

from bqlib.connection import BigqueryClient, QueryTransport
from bqlib.exceptions import TransportError
from bqlib.transport.models import QueryRequest


def _response(status_code=200, body=None):
    response = Mock(status_code=status_code, text="{}")
    response.json.return_value = body if body is not None else {"jobComplete": True}
    return response


class TestBigqueryClient:
    """Tests for BigqueryClient."""

    def test_implements_transport_protocol(self):
        client = BigqueryClient("my-project", "analytics", session=Mock())
        assert isinstance(client, QueryTransport)
        assert client.project_id == "my-project"
        assert client.dataset_id == "analytics"

    def test_invalid_ids_rejected(self):
        with pytest.raises(ValueError):
            BigqueryClient("my-project", "not-a-dataset", session=Mock())

    @pytest.mark.asyncio
    async def test_execute_query_posts_to_jobs_query(self):
        session = Mock()
        session.post.return_value = _response(body={"jobComplete": True, "totalRows": "0"})
        client = BigqueryClient("my-project", "analytics", session=session, location="EU", timeout=5)

        http_response, parsed = await client.execute_query(QueryRequest(query="SELECT 1"))

        assert http_response.status_code == 200
        assert parsed.total_rows == 0
        args, kwargs = session.post.call_args
        assert args[0] == "https://bigquery.googleapis.com/bigquery/v2/projects/my-project/queries"
        assert kwargs["json"]["query"] == "SELECT 1"
        assert kwargs["json"]["location"] == "EU"
        assert kwargs["json"]["timeoutMs"] == 5000
        assert kwargs["timeout"] == 5

    @pytest.mark.asyncio
    async def test_error_status_is_not_parsed(self):
        session = Mock()
        session.post.return_value = _response(status_code=400)
        client = BigqueryClient("my-project", "analytics", session=session)

        http_response, parsed = await client.execute_query(QueryRequest(query="SELEC 1"))

        assert http_response.status_code == 400
        assert parsed.rows is None
        session.post.return_value.json.assert_not_called()

    @pytest.mark.asyncio
    async def test_request_failures_become_transport_errors(self):
        session = Mock()
        session.post.side_effect = requests.ConnectionError("connection refused")
        client = BigqueryClient("my-project", "analytics", session=session)

        with pytest.raises(TransportError) as exc_info:
            await client.execute_query(QueryRequest(query="SELECT 1"))

        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_session_created_lazily_from_default_credentials(self):
        credentials = Mock()
        with patch("bqlib.connection.client.google.auth.default", return_value=(credentials, "proj")) as default, \
                patch("bqlib.connection.client.AuthorizedSession") as session_cls:
            client = BigqueryClient.from_default_credentials("my-project", "analytics")
            default.assert_not_called()

            session = client.session

        default.assert_called_once()
        session_cls.assert_called_once_with(credentials)
        assert session is session_cls.return_value

    def test_missing_service_account_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            BigqueryClient.from_service_account("my-project", "analytics", tmp_path / "missing.json")

    def test_from_service_account(self, tmp_path):
        key_file = tmp_path / "key.json"
        key_file.write_text("{}")
        credentials = Mock()
        with patch(
            "bqlib.connection.client.service_account.Credentials.from_service_account_file",
            return_value=credentials,
        ) as from_file:
            client = BigqueryClient.from_service_account("my-project", "analytics", key_file, timeout=10)

        from_file.assert_called_once()
        assert from_file.call_args.args[0] == str(key_file)
        assert client._credentials is credentials
        assert client.timeout == 10

    def test_from_profile(self, tmp_path):
        config_path = tmp_path / "connections.toml"
        config_path.write_text(
            '[dev]\nproject_id = "dev-project"\ndataset_id = "dev_dataset"\nlocation = "EU"\n'
        )

        client = BigqueryClient.from_profile("dev", path=config_path, timeout=15.0)

        assert client.project_id == "dev-project"
        assert client.dataset_id == "dev_dataset"
        assert client.location == "EU"
        assert client.timeout == 15.0

    def test_close_only_closes_owned_session(self):
        session = Mock()
        client = BigqueryClient("my-project", "analytics", session=session)
        client.close()
        session.close.assert_not_called()

        with patch("bqlib.connection.client.AuthorizedSession") as session_cls:
            with BigqueryClient("my-project", "analytics", credentials=Mock()) as owned:
                _ = owned.session
        session_cls.return_value.close.assert_called_once()

    def test_repr(self):
        client = BigqueryClient("my-project", "analytics")
        assert repr(client) == (
            "BigqueryClient(project_id='my-project', dataset_id='analytics', not connected)"
        )
