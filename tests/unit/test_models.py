"""Tests for the REST wire models."""

from bqlib.transport.models import QueryParameter, QueryRequest, QueryResponse


class TestQueryParameter:
    """Tests for query parameter serialization."""

    def test_create_and_accessors(self):
        param = QueryParameter.create("__PARAM_0", "STRING", "cc")

        assert param.name == "__PARAM_0"
        assert param.warehouse_type == "STRING"
        assert param.value == "cc"

    def test_non_string_values_serialize_as_strings(self):
        param = QueryParameter.create("__PARAM_x", "DOUBLE", 1.5)

        assert param.value == 1.5
        assert param.to_api() == {
            "name": "__PARAM_x",
            "parameterType": {"type": "DOUBLE"},
            "parameterValue": {"value": "1.5"},
        }

    def test_repr(self):
        assert "STRING" in repr(QueryParameter.create("n", "STRING", "v"))


class TestQueryRequest:
    """Tests for request bodies."""

    def test_optional_fields_are_omitted(self):
        body = QueryRequest(query="SELECT 1").to_api()

        assert body == {"query": "SELECT 1", "useLegacySql": False, "parameterMode": "NAMED"}

    def test_snake_case_fields_use_camel_case_aliases(self):
        body = QueryRequest(query="SELECT 1", timeout_ms=1000, max_results=10, dry_run=True).to_api()

        assert body["timeoutMs"] == 1000
        assert body["maxResults"] == 10
        assert body["dryRun"] is True


class TestQueryResponse:
    """Tests for response parsing."""

    def test_parses_rows_and_counts(self):
        response = QueryResponse.model_validate({
            "kind": "bigquery#queryResponse",
            "jobComplete": True,
            "totalRows": "2",
            "rows": [{"f": [{"v": "1"}, {"v": None}]}, {"f": [{"v": "2"}, {"v": "x"}]}],
            "jobReference": {"projectId": "P", "jobId": "job_abc", "location": "EU"},
            "schema": {"fields": [{"name": "Id", "type": "INTEGER"}]},
        })

        assert response.total_rows == 2
        assert response.job_complete is True
        assert response.job_id == "job_abc"
        assert response.rows[1].f[1].v == "x"
        assert response.rows[0].f[1].v is None
        assert response.schema_["fields"][0]["name"] == "Id"

    def test_dml_affected_rows(self):
        response = QueryResponse.model_validate({"jobComplete": True, "numDmlAffectedRows": "3"})

        assert response.num_dml_affected_rows == 3
        assert response.rows is None
        assert response.job_id is None

    def test_errors(self):
        response = QueryResponse.model_validate({
            "errors": [{"reason": "invalidQuery", "message": "Syntax error"}],
        })
        assert response.errors[0].reason == "invalidQuery"
