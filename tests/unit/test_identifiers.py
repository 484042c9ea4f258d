"""Tests for BigQuery identifier helpers."""

import pytest

from bqlib.utils import (
    is_valid_column_name,
    is_valid_dataset_id,
    is_valid_project_id,
    is_valid_table_name,
    table_identifier,
)


class TestIdentifiers:
    """Tests for identifier validation and quoting."""

    @pytest.mark.parametrize("name", ["my-project", "example.com:my-project", "p1"])
    def test_valid_project_ids(self, name):
        assert is_valid_project_id(name)

    @pytest.mark.parametrize("name", ["", "-leading", "has space"])
    def test_invalid_project_ids(self, name):
        assert not is_valid_project_id(name)

    def test_dataset_ids(self):
        assert is_valid_dataset_id("analytics_2024")
        assert not is_valid_dataset_id("analytics-2024")

    def test_table_names(self):
        assert is_valid_table_name("Infos")
        assert is_valid_table_name("daily events")
        assert not is_valid_table_name("drop;table")

    def test_column_names(self):
        assert is_valid_column_name("Id")
        assert is_valid_column_name("_private")
        assert not is_valid_column_name("1st")
        assert not is_valid_column_name("with-dash")

    def test_table_identifier(self):
        assert table_identifier("P", "D", "Infos") == "`P.D.Infos`"
