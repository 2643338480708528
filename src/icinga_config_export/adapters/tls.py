"""
TLS adapter — CA bundle loading and the audited HTTPS client.

The Icinga 2 API presents a certificate issued by the cluster's own CA and
named after the node's common name, which usually differs from the address
we connect to. The client therefore:

  1. trusts only the certificates found in the supplied PEM bundle
  2. verifies the server certificate against the configured common name
     (sent as SNI and used for hostname checking) instead of the host
  3. prints every outgoing request to an audit stream before sending it

CA parsing goes through cryptography so that a file without a single usable
certificate is rejected before any connection is attempted.
"""

from __future__ import annotations

import re
import ssl
import sys
from pathlib import Path
from typing import TextIO

import httpx
import structlog
from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding

from icinga_config_export.config import ExportSettings
from icinga_config_export.railway import ErrorCode, Result

log = structlog.get_logger()

_PEM_CERTIFICATE = re.compile(
    rb"-----BEGIN CERTIFICATE-----.+?-----END CERTIFICATE-----", re.DOTALL
)


def load_ca_bundle(path: Path) -> Result[bytes]:
    """
    Read a PEM file and return the DER of every certificate it holds.

    Returns Result.failure(CERTIFICATE_ERROR) if the file cannot be read
    or no CERTIFICATE block in it parses as X.509.
    """
    return (
        Result.from_computation(
            path.read_bytes,
            ErrorCode.CERTIFICATE_ERROR,
            f"Cannot read CA file {path}",
        )
        .flat_map(
            lambda data: Result.from_computation(
                lambda: _certificates_in(data),
                ErrorCode.CERTIFICATE_ERROR,
                "bad CA cert",
            )
        )
        .flat_map(_require_certificates)
        .peek(lambda ders: log.debug("ca.loaded", path=str(path), certificates=len(ders)))
        .map(b"".join)
    )


def _certificates_in(data: bytes) -> list[bytes]:
    """DER of each CERTIFICATE block that parses as X.509; other blocks are ignored."""
    certificates: list[bytes] = []
    for block in _PEM_CERTIFICATE.findall(data):
        try:
            certificate = x509.load_pem_x509_certificate(block)
        except ValueError:
            log.warning("ca.skipped_unparseable_block")
            continue
        certificates.append(certificate.public_bytes(Encoding.DER))
    return certificates


def _require_certificates(certificates: list[bytes]) -> Result[list[bytes]]:
    if not certificates:
        return Result.failure(ErrorCode.CERTIFICATE_ERROR, "bad CA cert")
    return Result.success(certificates)


def create_ssl_context(ca_der: bytes) -> ssl.SSLContext:
    """Client context trusting only the given certificates, hostname checks on."""
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cadata=ca_der)
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED
    return context


class AuditLogTransport(httpx.BaseTransport):
    """
    Transport decorator printing ``METHOD URL`` for every request.

    Wraps any httpx.BaseTransport; the export logic never sees it.
    """

    def __init__(self, inner: httpx.BaseTransport, stream: TextIO | None = None) -> None:
        self._inner = inner
        self._stream = stream

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        stream = self._stream if self._stream is not None else sys.stdout
        print(f"{request.method} {request.url}", file=stream, flush=True)  # noqa: T201
        return self._inner.handle_request(request)

    def close(self) -> None:
        self._inner.close()


def build_client(
    settings: ExportSettings,
    ca_der: bytes,
    audit_stream: TextIO | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """
    Create the HTTPS client used for every API request.

    ``transport`` replaces the real HTTPTransport (tests); the audit
    decorator is applied either way. The server name itself is pinned per
    request by the request template (sni_hostname extension).
    """
    inner = transport or httpx.HTTPTransport(verify=create_ssl_context(ca_der))
    return httpx.Client(
        base_url=settings.base_url,
        transport=AuditLogTransport(inner, audit_stream),
        timeout=settings.http_timeout_seconds,
    )
