"""Pytest configuration and shared fixtures for integration tests."""

import sys
from typing import Any, Dict, Iterator

# Use tomllib for Python 3.11+, fallback to tomli for older versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        raise ImportError(
            "Python < 3.11 requires 'tomli' package. " +
            "Install it with: pip install tomli"
        )

import pytest

from bqlib.config import CONF_DIR
from bqlib.connection import BigqueryClient


def _load_test_config() -> Dict[str, Any]:
    """
    Load test configuration from <config dir>/test_config.toml.

    Returns:
        Dictionary with test configuration settings, empty when the file is absent
    """
    test_config_path = CONF_DIR / "test_config.toml"

    if not test_config_path.exists():
        return {}

    with open(test_config_path, "rb") as f:
        config = tomllib.load(f)

    return config.get("test", {})


# Load test config once at module level
_TEST_CONFIG = _load_test_config()


def pytest_collection_modifyitems(config, items):
    """Skip integration tests when no test configuration is present."""
    if _TEST_CONFIG.get("profile"):
        return
    skip = pytest.mark.skip(
        reason=f"Integration tests need {CONF_DIR / 'test_config.toml'} with a [test] profile"
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def test_profile() -> str:
    """BigQuery profile to use for integration tests."""
    profile = _TEST_CONFIG.get("profile")
    if not profile:
        pytest.skip("Test profile not configured in test_config.toml")
    return profile


@pytest.fixture(scope="session")
def test_table() -> str:
    """Table used for write tests; it must already exist with the Infos layout."""
    return _TEST_CONFIG.get("table", "Infos")


@pytest.fixture
def client(test_profile: str) -> Iterator[BigqueryClient]:
    """Client for the configured test profile."""
    with BigqueryClient.from_profile(test_profile) as client:
        yield client
