"""
Failure description — structured error information for the failure track.

Every way the export can go wrong maps to exactly one ErrorCode, so the
entry point can decide the process exit status without inspecting
exception types.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Structured error codes for the failure track.

    Configuration problems are detected before any network activity;
    everything else is a runtime failure of the export itself.
    """

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Missing or invalid command-line flag or environment variable."""

    CERTIFICATE_ERROR = "CERTIFICATE_ERROR"
    """CA bundle unreadable or holding no parseable certificate."""

    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    """DNS, connect, TLS or read failure surfaced by the HTTP stack."""

    BAD_STATUS = "BAD_STATUS"
    """The API answered with a status other than 200."""

    DECODE_ERROR = "DECODE_ERROR"
    """Response body is not the JSON document we expected."""

    IO_ERROR = "IO_ERROR"
    """Local output file could not be created, written or closed."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying error code, message, optional
    exception, optional HTTP status and timestamp.

    >>> desc = FailureDescription(ErrorCode.BAD_STATUS, "HTTP 404", status_code=404)
    >>> desc.code
    <ErrorCode.BAD_STATUS: 'BAD_STATUS'>
    >>> desc.status_code
    404
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    status_code: Optional[int] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def full_stack_trace(self) -> str:
        """Message followed by the formatted exception chain, if any."""
        if self.exception is None:
            return self.message
        tb = "".join(
            traceback.format_exception(
                type(self.exception), self.exception, self.exception.__traceback__
            )
        )
        return f"{self.message}\n{tb}"
