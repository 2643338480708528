"""
Pipeline — the export driver.

Domain layer: no I/O of its own, everything goes through the ConfigApi and
BundleWriter ports.

  list_packages()
    → for each package with a name and an active stage:
        list_stage_files(package)
          → fetch_file(package, f) for each regular file below the stage root
            → write(bundle) when at least one file was collected

Steps run strictly one after another. The first Failure ends the run and is
returned unchanged; bundles written before it stay on disk.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from icinga_config_export.domain.models import (
    ExportBundle,
    ExportSummary,
    Package,
    StageFile,
)
from icinga_config_export.domain.ports import BundleWriter, ConfigApi
from icinga_config_export.railway import Result

log = structlog.get_logger()


def decode_content(content: bytes) -> str:
    """
    Text stored in the bundle for a fetched file.

    Valid UTF-8 is kept byte for byte; invalid sequences become U+FFFD,
    as any JSON encoder of a byte string would do.
    """
    return content.decode("utf-8", errors="replace")


def collect_bundle(api: ConfigApi, package: Package) -> Result[ExportBundle]:
    """Fetch every exportable file of the package's active stage."""
    return api.list_stage_files(package).flat_map(
        lambda entries: _fetch_files(api, package, entries)
    )


def _fetch_files(
    api: ConfigApi,
    package: Package,
    entries: list[StageFile],
) -> Result[ExportBundle]:
    files: dict[str, str] = {}
    for entry in entries:
        if not entry.is_exportable:
            continue
        fetched = api.fetch_file(package, entry)
        if fetched.is_failure():
            return Result.failure_from(fetched.error())
        files[entry.name] = decode_content(fetched.value())

    log.debug(
        "export.stage_collected",
        package=package.name,
        stage=package.active_stage,
        entries=len(entries),
        files=len(files),
    )
    return Result.success(ExportBundle(package=package, files=files))


def _write_if_not_empty(writer: BundleWriter, bundle: ExportBundle) -> Result[tuple[Path, ...]]:
    if bundle.is_empty:
        log.info("export.package_empty", package=bundle.package.name)
        return Result.success(())
    return writer.write(bundle).map(lambda path: (path,))


def _export_packages(
    api: ConfigApi,
    writer: BundleWriter,
    packages: list[Package],
) -> Result[ExportSummary]:
    skipped = 0
    files_exported = 0
    written: list[Path] = []

    for package in packages:
        if not package.is_exportable:
            skipped += 1
            log.debug("export.package_skipped", package=package.name)
            continue

        outcome = collect_bundle(api, package).flat_map(
            lambda bundle: _write_if_not_empty(writer, bundle).map(
                lambda paths: (len(bundle.files), paths)
            )
        )
        if outcome.is_failure():
            return Result.failure_from(outcome.error())

        file_count, paths = outcome.value()
        files_exported += file_count
        written.extend(paths)

    return Result.success(
        ExportSummary(
            packages_seen=len(packages),
            packages_skipped=skipped,
            files_exported=files_exported,
            written=tuple(written),
        )
    )


def run_export(api: ConfigApi, writer: BundleWriter) -> Result[ExportSummary]:
    """
    Export the active stage of every package, one bundle file per package.

    Returns Result[ExportSummary] on success, or the Failure of the first
    step that failed.
    """
    return (
        api.list_packages()
        .peek(lambda packages: log.info("export.packages_listed", count=len(packages)))
        .flat_map(lambda packages: _export_packages(api, writer, packages))
    )
