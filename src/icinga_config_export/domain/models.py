"""
Domain models — immutable value objects for packages, stage files and bundles.

These mirror the objects exposed by the Icinga 2 configuration API
(/v1/config/packages, /v1/config/stages) and the JSON bundle written per
package. They carry the filtering rules of the export and nothing else.

All models are frozen dataclasses (immutable).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote

# Characters Go's url.PathEscape leaves alone besides the unreserved set.
_PATH_SEGMENT_SAFE = "$&+:=@"
# A whole path additionally keeps its separators, "," and ";".
_PATH_SAFE = "/,;" + _PATH_SEGMENT_SAFE

FILE_TYPE = "file"
PATH_SEPARATOR = "/"


def escape_path_segment(value: str) -> str:
    """
    Percent-encode a value for use as a single URL path segment.

    "/" and spaces are encoded (``"my pkg"`` → ``"my%20pkg"``).
    """
    return quote(value, safe=_PATH_SEGMENT_SAFE)


def escape_path(value: str) -> str:
    """
    Percent-encode a relative path for the wire, keeping its "/" separators.

    "?", "#" and "%" are encoded so the path is never read as a query,
    a fragment or an existing escape (``"a?b%41"`` → ``"a%3Fb%2541"``).
    """
    return quote(value, safe=_PATH_SAFE)


@dataclass(frozen=True, slots=True)
class Package:
    """
    A named configuration package with its currently active stage.

    Either field may be empty when the API omits it; such packages are
    not exported.
    """

    name: str = ""
    active_stage: str = ""

    @property
    def is_exportable(self) -> bool:
        return bool(self.name) and bool(self.active_stage)

    @property
    def escaped_name(self) -> str:
        return escape_path_segment(self.name)

    @property
    def escaped_stage(self) -> str:
        return escape_path_segment(self.active_stage)


@dataclass(frozen=True, slots=True)
class StageFile:
    """
    One entry of a stage listing.

    The name is a path relative to the stage root; ``type`` is "file",
    "directory" or whatever else the API reports.
    """

    name: str = ""
    type: str = ""

    @property
    def is_exportable(self) -> bool:
        # Top-level entries (no separator) are synthetic and never exported.
        return self.type == FILE_TYPE and PATH_SEPARATOR in self.name

    @property
    def escaped_name(self) -> str:
        return escape_path(self.name)


@dataclass(frozen=True, slots=True)
class ExportBundle:
    """
    The files of one package's active stage, keyed by relative path.

    Serialized as ``{"files": {path: content}}`` into
    ``<escaped package name>.json``.
    """

    package: Package
    files: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.files

    @property
    def file_name(self) -> str:
        return f"{self.package.escaped_name}.json"


@dataclass(frozen=True, slots=True)
class ExportSummary:
    """Outcome of a complete export run, logged at the end."""

    packages_seen: int = 0
    packages_skipped: int = 0
    files_exported: int = 0
    written: tuple[Path, ...] = ()

    @property
    def bundles_written(self) -> int:
        return len(self.written)
