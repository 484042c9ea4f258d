"""Utilities for validating BigQuery identifiers"""

import re

_PROJECT_ID = re.compile(r'^[A-Za-z0-9][A-Za-z0-9\-.:]*$')
_DATASET_ID = re.compile(r'^[A-Za-z0-9_]{1,1024}$')
_TABLE_NAME = re.compile(r'^[\w\- ]{1,1024}$')
_COLUMN_NAME = re.compile(r'^[A-Za-z_][A-Za-z0-9_]{0,299}$')


def is_valid_project_id(name: str) -> bool:
    """Check if a string is a valid project id (including domain-scoped ids)"""
    return bool(name) and bool(_PROJECT_ID.match(name))


def is_valid_dataset_id(name: str) -> bool:
    """Check if a string is a valid dataset id"""
    return bool(name) and bool(_DATASET_ID.match(name))


def is_valid_table_name(name: str) -> bool:
    """Check if a string is a valid table name"""
    return bool(name) and bool(_TABLE_NAME.match(name))


def is_valid_column_name(name: str) -> bool:
    """Check if a string is a valid column name usable without quoting"""
    return bool(name) and bool(_COLUMN_NAME.match(name))


def table_identifier(project_id: str, dataset_id: str, table_name: str) -> str:
    """Backtick-quoted fully qualified table reference for standard SQL"""
    return f"`{project_id}.{dataset_id}.{table_name}`"
