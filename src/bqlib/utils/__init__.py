"""Shared helpers"""

from .identifiers import (
    is_valid_project_id,
    is_valid_dataset_id,
    is_valid_table_name,
    is_valid_column_name,
    table_identifier,
)

__all__ = [
    "is_valid_project_id",
    "is_valid_dataset_id",
    "is_valid_table_name",
    "is_valid_column_name",
    "table_identifier",
]
