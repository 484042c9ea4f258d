"""Pydantic models mirroring the BigQuery v2 REST query shapes"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel


class _ApiModel(BaseModel):
    """Base for REST payloads: camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_api(self) -> dict[str, Any]:
        """Serialize to the JSON body expected by the REST API"""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class QueryParameterType(_ApiModel):
    type: str


class QueryParameterValue(_ApiModel):
    value: Optional[Any] = None

    @field_serializer("value")
    def _serialize_value(self, value: Any) -> Optional[str]:
        # QueryParameterValue.value is a string field in the REST schema
        if value is None or isinstance(value, str):
            return value
        return str(value)


class QueryParameter(_ApiModel):
    """A named query parameter: name, BigQuery type and JSON value"""

    name: str
    parameter_type: QueryParameterType
    parameter_value: QueryParameterValue

    @classmethod
    def create(cls, name: str, warehouse_type: str, value: Any) -> "QueryParameter":
        """Build a parameter from its three components"""
        return cls(
            name=name,
            parameter_type=QueryParameterType(type=warehouse_type),
            parameter_value=QueryParameterValue(value=value),
        )

    @property
    def warehouse_type(self) -> str:
        """The BigQuery type name of the parameter"""
        return self.parameter_type.type

    @property
    def value(self) -> Any:
        """The JSON value of the parameter"""
        return self.parameter_value.value

    def __repr__(self) -> str:
        return f"QueryParameter(name={self.name!r}, type={self.warehouse_type!r}, value={self.value!r})"


class QueryRequest(_ApiModel):
    """Body of a jobs.query call"""

    query: Optional[str] = None
    query_parameters: Optional[list[QueryParameter]] = None
    use_legacy_sql: bool = False
    parameter_mode: Optional[str] = "NAMED"
    location: Optional[str] = None
    timeout_ms: Optional[int] = None
    max_results: Optional[int] = None
    dry_run: Optional[bool] = None


class TableCell(_ApiModel):
    v: Optional[Any] = None


class TableRow(_ApiModel):
    f: Optional[list[TableCell]] = None


class JobReference(_ApiModel):
    project_id: Optional[str] = None
    job_id: Optional[str] = None
    location: Optional[str] = None


class ErrorProto(_ApiModel):
    reason: Optional[str] = None
    location: Optional[str] = None
    message: Optional[str] = None


class QueryResponse(_ApiModel):
    """Response of a jobs.query call; only the first page of rows is included"""

    rows: Optional[list[TableRow]] = None
    total_rows: Optional[int] = None
    job_complete: Optional[bool] = None
    page_token: Optional[str] = None
    num_dml_affected_rows: Optional[int] = None
    job_reference: Optional[JobReference] = None
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")
    errors: Optional[list[ErrorProto]] = None

    @property
    def job_id(self) -> Optional[str]:
        """Identifier of the job that ran the query, if reported"""
        return self.job_reference.job_id if self.job_reference else None
