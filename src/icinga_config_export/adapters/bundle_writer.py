"""
Bundle writer — serializes one package's files to ``<package>.json``.

Implements the BundleWriter port. The document shape is
``{"files": {"<relative path>": "<content>"}}`` followed by a newline,
UTF-8 encoded, non-ASCII characters written as-is.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from pydantic import BaseModel

from icinga_config_export.domain.models import ExportBundle
from icinga_config_export.railway import ErrorCode, Result

log = structlog.get_logger()


class BundleDocument(BaseModel):
    files: dict[str, str]


class JsonBundleWriter:
    """Write bundles into ``output_dir``, truncating existing files."""

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = output_dir

    def write(self, bundle: ExportBundle) -> Result[Path]:
        target = self._output_dir / bundle.file_name
        return Result.from_computation(
            lambda: self._write(target, bundle),
            ErrorCode.IO_ERROR,
            f"Cannot write bundle {target}",
        ).peek(
            lambda path: log.info(
                "bundle.written",
                package=bundle.package.name,
                path=str(path),
                files=len(bundle.files),
            )
        )

    @staticmethod
    def _write(target: Path, bundle: ExportBundle) -> Path:
        document = BundleDocument(files=bundle.files).model_dump_json()
        with target.open("w", encoding="utf-8", newline="\n") as handle:
            handle.write(document)
            handle.write("\n")
        return target
