"""
Ports — Protocol-based interfaces for infrastructure adapters.

These define WHAT the export needs without specifying HOW it's done:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing) so adapters satisfy
the contract simply by implementing the methods; no inheritance is needed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from icinga_config_export.domain.models import ExportBundle, Package, StageFile
from icinga_config_export.railway.result import Result


@runtime_checkable
class ConfigApi(Protocol):
    """
    Port: read-only access to the Icinga 2 configuration-management API.

    Every method issues exactly one HTTP request.
    """

    def list_packages(self) -> Result[list[Package]]: ...

    def list_stage_files(self, package: Package) -> Result[list[StageFile]]: ...

    def fetch_file(self, package: Package, stage_file: StageFile) -> Result[bytes]: ...


@runtime_checkable
class BundleWriter(Protocol):
    """
    Port: persist one package's bundle.

    Returns the path written. An existing file with the same name is
    truncated; nothing is rolled back on later failures.
    """

    def write(self, bundle: ExportBundle) -> Result[Path]: ...
