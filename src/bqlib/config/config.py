"""Configuration loading for BigQuery connection profiles."""

import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

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

from bqlib.utils.identifiers import is_valid_dataset_id, is_valid_project_id

from .paths import resolve_config_path


class ConnectionProfile(BaseModel):
    """Validated contents of one profile in connections.toml"""

    model_config = ConfigDict(extra="forbid")

    project_id: str
    dataset_id: str
    service_account_path: Optional[Path] = None
    location: Optional[str] = None
    timeout: float = Field(default=60.0, gt=0)

    @field_validator("project_id")
    @classmethod
    def _check_project_id(cls, value: str) -> str:
        if not is_valid_project_id(value):
            raise ValueError(f"Invalid project id: {value!r}")
        return value

    @field_validator("dataset_id")
    @classmethod
    def _check_dataset_id(cls, value: str) -> str:
        if not is_valid_dataset_id(value):
            raise ValueError(f"Invalid dataset id: {value!r}")
        return value

    @field_validator("service_account_path")
    @classmethod
    def _expand_path(cls, value: Optional[Path]) -> Optional[Path]:
        return value.expanduser() if value is not None else None


def _read_profiles(config_file: Path) -> Dict[str, Any]:
    with open(config_file, "rb") as f:
        return tomllib.load(f)


def load_profile(
    profile: str,
    path: Optional[Union[str, Path]] = None
) -> Dict[str, Any]:
    """
    Load a BigQuery connection profile from a connections.toml file.

    Args:
        profile: Name of the profile to load
        path: Optional explicit path to connections.toml file.
              If None, uses the configuration directory.

    Returns:
        Dictionary containing connection parameters for the profile

    Raises:
        FileNotFoundError: If connections.toml file is not found
        KeyError: If the specified profile doesn't exist in the file

    Example:
        >>> load_profile("dev")
        {'project_id': 'my-project', 'dataset_id': 'analytics', ...}
    """
    config_file = resolve_config_path(path)

    if not config_file.exists():
        raise FileNotFoundError(
            f"BigQuery configuration file not found at {config_file}. " +
            "Create a connections.toml file or see connections.toml.example for template."
        )

    all_profiles = _read_profiles(config_file)

    if profile not in all_profiles:
        available = ", ".join(all_profiles.keys())
        raise KeyError(
            f"Profile '{profile}' not found in {config_file}. " +
            f"Available profiles: {available}"
        )

    return dict(all_profiles[profile])


def list_profiles(path: Optional[Union[str, Path]] = None) -> list[str]:
    """List all available profile names in connections.toml"""
    try:
        config_file = resolve_config_path(path)
    except FileNotFoundError:
        return []

    if not config_file.exists():
        return []

    return list(_read_profiles(config_file).keys())
