"""
Configuration — typed, validated settings built once at startup.

Uses pydantic-settings so that:
  - connection flags (-host, -port, -ca, -cn, -user, -out) arrive as init
    arguments from the command line
  - the API password is only ever read from the I2_PASS environment variable
  - ambient knobs (I2_LOG_LEVEL, I2_HTTP_TIMEOUT) come from the environment

All configuration errors surface as pydantic ValidationError before any
network activity. The resulting object is frozen and passed explicitly to
every component.
"""

from __future__ import annotations

from pathlib import Path

import httpx
from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PASSWORD_ENV = "I2_PASS"

# Field name → how the value is supplied, used in error messages.
_SOURCES: dict[str, str] = {
    "host": "-host",
    "port": "-port",
    "ca": "-ca",
    "cn": "-cn",
    "user": "-user",
    "output_dir": "-out",
    PASSWORD_ENV: f"${PASSWORD_ENV}",
    "log_level": "$I2_LOG_LEVEL",
    "I2_HTTP_TIMEOUT": "$I2_HTTP_TIMEOUT",
}


class ExportSettings(BaseSettings):
    """
    Connection and output settings for one export run.

    Load order (highest priority first):
      1. Init arguments (command-line flags)
      2. Environment variables with the I2_ prefix
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="I2_",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    host: str = Field(min_length=1, description="API host name or address")
    port: int = Field(default=5665, ge=1, le=65535, description="API port")
    ca: Path = Field(description="PEM file with the CA certificate(s) to trust")
    cn: str = Field(min_length=1, description="Expected server certificate common name")
    user: str = Field(min_length=1, description="API user for Basic authentication")
    password: SecretStr = Field(
        validation_alias=PASSWORD_ENV,
        description="API password for Basic authentication",
    )
    output_dir: Path = Field(default=Path("."), description="Directory receiving bundles")

    http_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        validation_alias="I2_HTTP_TIMEOUT",
    )
    log_level: str = Field(default="INFO")

    @field_validator("host")
    @classmethod
    def reject_unusable_host(cls, value: str) -> str:
        try:
            httpx.URL(f"https://{value}/")
        except httpx.InvalidURL as e:
            raise ValueError(str(e)) from e
        return value

    @field_validator("ca", mode="before")
    @classmethod
    def reject_empty_path(cls, value: object) -> object:
        """Path("") would silently mean the current directory."""
        if isinstance(value, str) and not value:
            raise ValueError("value is empty")
        return value

    @field_validator("password")
    @classmethod
    def reject_empty_password(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("value is empty")
        return value

    @property
    def base_url(self) -> str:
        return f"https://{self.host}:{self.port}"


def describe_validation_error(error: ValidationError) -> list[str]:
    """
    Turn a settings ValidationError into one line per offending input.

    Empty or absent values read ``-host missing``; anything else names the
    flag and pydantic's reason.
    """
    lines: list[str] = []
    for detail in error.errors():
        field_name = str(detail["loc"][0]) if detail["loc"] else ""
        source = _SOURCES.get(field_name, field_name)
        value = detail.get("input")
        if detail["type"] == "missing" or value in ("", None):
            lines.append(f"{source} missing")
        else:
            lines.append(f"{source} invalid: {detail['msg']}")
    return lines
