"""
Config API adapter — the three read endpoints of /v1/config.

Implements the ConfigApi port on top of send_request:

  GET /v1/config/packages                        → packages
  GET /v1/config/stages/{package}/{stage}        → stage file listing
  GET /v1/config/files/{package}/{stage}/{path}  → raw file content

Package and stage names are escaped as single path segments. The file path
keeps its "/" separators as the stage listing returned it; only characters
that would change the URL (space, "?", "#", "%" ...) are escaped on the wire.

JSON null in a string field decodes as "", like an absent key.
"""

from __future__ import annotations

from typing import Annotated

import httpx
import structlog
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from icinga_config_export.adapters.http_client import (
    DecodeJson,
    RawBytes,
    RequestTemplate,
    send_request,
)
from icinga_config_export.domain.models import Package, StageFile
from icinga_config_export.railway import Result

log = structlog.get_logger()

PACKAGES_PATH = "/v1/config/packages"
STAGES_PATH = "/v1/config/stages"
FILES_PATH = "/v1/config/files"

WireStr = Annotated[str, BeforeValidator(lambda value: "" if value is None else value)]


class _PackageEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: WireStr = ""
    active_stage: WireStr = Field(default="", alias="active-stage")


class _PackageListing(BaseModel):
    results: list[_PackageEntry] | None = None


class _StageFileEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: WireStr = ""
    type: WireStr = ""


class _StageListing(BaseModel):
    results: list[_StageFileEntry] | None = None


def stage_path(package: Package) -> str:
    return f"{STAGES_PATH}/{package.escaped_name}/{package.escaped_stage}"


def file_path(package: Package, stage_file: StageFile) -> str:
    stage = f"{package.escaped_name}/{package.escaped_stage}"
    return f"{FILES_PATH}/{stage}/{stage_file.escaped_name}"


class IcingaConfigApi:
    """
    Read-only client for the Icinga 2 configuration-management endpoints.

    Implements the ConfigApi port.
    """

    def __init__(self, client: httpx.Client, template: RequestTemplate) -> None:
        self._client = client
        self._template = template

    def list_packages(self) -> Result[list[Package]]:
        return send_request(
            self._client,
            self._template,
            "GET",
            PACKAGES_PATH,
            sink=DecodeJson(_PackageListing),
        ).map(
            lambda listing: [
                Package(name=entry.name, active_stage=entry.active_stage)
                for entry in listing.results or ()
            ]
        )

    def list_stage_files(self, package: Package) -> Result[list[StageFile]]:
        return send_request(
            self._client,
            self._template,
            "GET",
            stage_path(package),
            sink=DecodeJson(_StageListing),
        ).map(
            lambda listing: [
                StageFile(name=entry.name, type=entry.type) for entry in listing.results or ()
            ]
        )

    def fetch_file(self, package: Package, stage_file: StageFile) -> Result[bytes]:
        return send_request(
            self._client,
            self._template,
            "GET",
            file_path(package, stage_file),
            sink=RawBytes(),
        ).peek(
            lambda content: log.debug(
                "file.fetched",
                package=package.name,
                file=stage_file.name,
                size_bytes=len(content),
            )
        )
