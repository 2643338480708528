"""
Application entry point — parses flags, wires dependencies, runs the export.

Composition root: builds the settings, the TLS client and the concrete
adapters, then hands them to the pipeline. This is the ONLY place that
decides the process exit status:

  0  every package exported
  1  runtime failure (CA file, network, HTTP status, decoding, file output)
  2  configuration error (flag, environment or unusable -host), detected
     before any request

Standard output carries the request audit trail only; logs and error
messages go to standard error.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

import httpx
import structlog
from pydantic import ValidationError

from icinga_config_export import __version__
from icinga_config_export.adapters.bundle_writer import JsonBundleWriter
from icinga_config_export.adapters.config_api import IcingaConfigApi
from icinga_config_export.adapters.http_client import RequestTemplate
from icinga_config_export.adapters.tls import build_client, load_ca_bundle
from icinga_config_export.config import ExportSettings, describe_validation_error
from icinga_config_export.domain.models import ExportSummary
from icinga_config_export.pipeline import run_export
from icinga_config_export.railway import ErrorCode, FailureDescription, Result

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIGURATION = 2

log = structlog.get_logger()


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for human-readable console logging on stderr.

    Unknown level names fall back to INFO.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="icinga-config-export",
        description=(
            "Export the active stage of every Icinga 2 config package "
            "into <package>.json files. The API password is read from $I2_PASS."
        ),
        allow_abbrev=False,
    )
    parser.add_argument("-host", default="", metavar="HOST")
    parser.add_argument("-port", default="5665", metavar="PORT")
    parser.add_argument("-ca", default="", metavar="FILE", help="PEM CA bundle")
    parser.add_argument("-cn", default="", metavar="COMMON_NAME", help="server certificate name")
    parser.add_argument("-user", default="", metavar="USERNAME")
    parser.add_argument("-out", default=".", metavar="DIR", help="output directory")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_settings(args: argparse.Namespace) -> ExportSettings:
    """Build settings from parsed flags plus the environment. Raises ValidationError."""
    return ExportSettings(
        host=args.host,
        port=args.port,
        ca=args.ca,
        cn=args.cn,
        user=args.user,
        output_dir=args.out,
    )


def _export(settings: ExportSettings, client: httpx.Client) -> Result[ExportSummary]:
    with client:
        api = IcingaConfigApi(client, RequestTemplate.for_settings(settings))
        return run_export(api, JsonBundleWriter(settings.output_dir))


def export(settings: ExportSettings) -> Result[ExportSummary]:
    """Load the CA bundle, open the client and run the whole export."""
    return (
        load_ca_bundle(settings.ca)
        .flat_map(
            lambda ca_der: Result.from_computation(
                lambda: build_client(settings, ca_der),
                ErrorCode.CERTIFICATE_ERROR,
                "Cannot set up TLS client",
            )
        )
        .flat_map(lambda client: _export(settings, client))
        .peek_failure(lambda error: log.debug("export.trace", trace=error.full_stack_trace()))
    )


def _on_success(summary: ExportSummary) -> int:
    log.info(
        "export.complete",
        packages=summary.packages_seen,
        skipped=summary.packages_skipped,
        bundles=summary.bundles_written,
        files=summary.files_exported,
    )
    return EXIT_OK


def _on_failure(error: FailureDescription) -> int:
    log.error(
        "export.failed",
        code=error.code.value,
        status=error.status_code,
        error=error.message,
    )
    print(error.message, file=sys.stderr)  # noqa: T201
    return EXIT_FAILURE


def run(argv: Sequence[str] | None = None) -> int:
    """Parse ``argv``, run the export and return the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        for line in describe_validation_error(e):
            print(line, file=sys.stderr)  # noqa: T201
        return EXIT_CONFIGURATION

    configure_structlog(settings.log_level)
    log.info(
        "app.starting",
        version=__version__,
        host=settings.host,
        port=settings.port,
        server_name=settings.cn,
        output_dir=str(settings.output_dir),
    )

    return export(settings).either(on_success=_on_success, on_failure=_on_failure)


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
