"""
Shared test fixtures and helpers for the icinga-config-export test suite.

Provides the TLS fixture files (a self-signed CA and a file holding no
certificate), a ready-made ExportSettings, and a clean structlog/environment
state for every test.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import structlog

from icinga_config_export.config import ExportSettings

FIXTURES_DIR = Path(__file__).parent / "fixtures"

API_HOST = "icinga.example.com"
API_PORT = 5665
BASE_URL = f"https://{API_HOST}:{API_PORT}"
SERVER_NAME = "icinga-master"
API_USER = "export"
API_PASSWORD = "s3cret"

_ENV_VARS = ("I2_PASS", "I2_LOG_LEVEL", "I2_HTTP_TIMEOUT", "I2_HOST", "I2_USER")


def fixture_path(filename: str) -> Path:
    """
    Resolve the absolute path to a test fixture file.

    Raises FileNotFoundError if the fixture does not exist.
    """
    path = FIXTURES_DIR / filename
    if not path.exists():
        raise FileNotFoundError(f"Test fixture not found: {path}")
    return path


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch):
    """No I2_* variable leaks in from the developer's shell; structlog reset afterwards."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    structlog.reset_defaults()


@pytest.fixture()
def ca_file() -> Path:
    return fixture_path("ca.pem")


@pytest.fixture()
def settings(
    ca_file: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> ExportSettings:
    """Valid settings pointing at the fixture CA and a temporary output dir."""
    monkeypatch.setenv("I2_PASS", API_PASSWORD)
    return ExportSettings(
        host=API_HOST,
        port=API_PORT,
        ca=ca_file,
        cn=SERVER_NAME,
        user=API_USER,
        output_dir=tmp_path,
    )
