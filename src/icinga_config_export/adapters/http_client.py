"""
HTTP request helper — one request per logical fetch, errors as Results.

Every request is cloned from an immutable RequestTemplate that carries the
Basic-Auth header and the pinned TLS server name; only the method, path and
optional JSON body change per call.

How the response body is consumed is chosen by an explicit sink:

  DecodeJson(Model) → validate the body into a pydantic model
  RawBytes()        → return the body as bytes, untouched
  Discard()         → ignore the body, return the status code

Failure mapping:
  httpx transport error → TRANSPORT_ERROR (original exception attached)
  status != 200         → BAD_STATUS (body echoed to stderr, status_code set)
  undecodable body      → DECODE_ERROR
"""

from __future__ import annotations

import base64
import sys
from dataclasses import dataclass, field
from typing import Any, Generic, TextIO, TypeAlias, TypeVar

import httpx
import structlog
from pydantic import BaseModel

from icinga_config_export.config import ExportSettings
from icinga_config_export.railway import ErrorCode, Result

log = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class DecodeJson(Generic[M]):
    model: type[M]


@dataclass(frozen=True, slots=True)
class RawBytes:
    pass


@dataclass(frozen=True, slots=True)
class Discard:
    pass


ResponseSink: TypeAlias = DecodeJson[Any] | RawBytes | Discard


@dataclass(frozen=True, slots=True)
class RequestTemplate:
    """
    The parts shared by every API request.

    Host and port live in the client's base_url; the template adds the
    Authorization header and the TLS server name to verify against.
    """

    server_name: str
    headers: tuple[tuple[str, str], ...] = field(default=())

    @staticmethod
    def for_settings(settings: ExportSettings) -> RequestTemplate:
        credentials = f"{settings.user}:{settings.password.get_secret_value()}"
        token = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        return RequestTemplate(
            server_name=settings.cn,
            headers=(("Authorization", f"Basic {token}"),),
        )

    def build(
        self,
        client: httpx.Client,
        method: str,
        path: str,
        body: Any = None,
    ) -> httpx.Request:
        """Fresh request for ``method path``; the template itself never changes."""
        return client.build_request(
            method,
            path,
            headers=dict(self.headers),
            json=body,
            extensions={"sni_hostname": self.server_name},
        )


def send_request(
    client: httpx.Client,
    template: RequestTemplate,
    method: str,
    path: str,
    body: Any = None,
    sink: ResponseSink = Discard(),
    error_stream: TextIO | None = None,
) -> Result[Any]:
    """
    Issue one request and consume the response through ``sink``.

    ``body``, when not None, is JSON-encoded and sent as the request body.
    Non-200 responses have their body copied to ``error_stream`` (stderr by
    default) before the BAD_STATUS failure is returned.
    """
    try:
        response = client.send(template.build(client, method, path, body))
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        log.debug("request.transport_error", method=method, path=path, error=str(e))
        return Result.failure(ErrorCode.TRANSPORT_ERROR, str(e) or type(e).__name__, e)

    if response.status_code != 200:
        _echo_body(response, error_stream if error_stream is not None else sys.stderr)
        log.debug("request.bad_status", method=method, path=path, status=response.status_code)
        return Result.failure(
            ErrorCode.BAD_STATUS,
            f"HTTP {response.status_code}",
            status_code=response.status_code,
        )

    return _consume(response, sink, f"{method} {path}")


def _echo_body(response: httpx.Response, stream: TextIO) -> None:
    # Bytes go out unchanged when the stream exposes its binary buffer.
    binary = getattr(stream, "buffer", None)
    if binary is None:
        stream.write(response.text)
        stream.flush()
        return
    stream.flush()
    binary.write(response.content)
    binary.flush()


def _consume(response: httpx.Response, sink: ResponseSink, what: str) -> Result[Any]:
    match sink:
        case DecodeJson(model=model):
            return Result.from_computation(
                lambda: model.model_validate_json(response.content),
                ErrorCode.DECODE_ERROR,
                f"Cannot decode response of {what}",
            )
        case RawBytes():
            return Result.success(response.content)
        case Discard():
            return Result.success(response.status_code)
    raise TypeError(f"unknown response sink: {sink!r}")  # pragma: no cover
