"""Exception hierarchy for bqlib"""

from typing import Any, Optional


class BigQueryError(Exception):
    """Base exception for all bqlib errors"""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return the error as a JSON-serializable dict"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConfigError(BigQueryError):
    """A record class was declared with invalid table annotations"""


class ConversionError(BigQueryError):
    """A value could not be converted to or from its query parameter form"""


class UnknownFieldError(BigQueryError):
    """A builder or accessor referenced a field the record does not declare"""

    def __init__(
        self,
        field_name: str,
        table_name: str,
        available_fields: Optional[list[str]] = None,
    ) -> None:
        available = available_fields or []
        message = f"Field {field_name} not found."
        if available:
            message += f" Available fields on '{table_name}': {', '.join(available)}"
        super().__init__(
            message,
            {"field_name": field_name, "table_name": table_name, "available_fields": available},
        )
        self.field_name = field_name
        self.table_name = table_name
        self.available_fields = available


class BuildError(BigQueryError):
    """A query builder was used in a state that does not allow the operation"""


class TransportError(BigQueryError):
    """The HTTP request or the authentication behind it failed"""


class BadStatusError(BigQueryError):
    """The query endpoint answered with a non-200 status"""

    def __init__(self, status_code: int, body: Optional[str] = None) -> None:
        super().__init__(
            f"Wrong status code returned! ({status_code})",
            {"status_code": status_code, "body": body},
        )
        self.status_code = status_code
        self.body = body


class CardinalityError(BigQueryError):
    """A lookup expected exactly one row but got none or several"""


class ResultShapeError(BigQueryError):
    """A query result did not have the expected shape"""
