"""
=============================================================================
CGIKIT CLI ENTRY POINT
=============================================================================

A diagnostic CGI program, and a way to run it without a web server.

=============================================================================
USAGE
=============================================================================

    # As a CGI script (point the web server at a wrapper that runs this):
    python -m cgikit report

    # Simulate a multipart POST locally and print the report:
    python -m cgikit simulate --field frogs=ribbit --file ./notes.txt

    # Debug logging to a file (stdout is the response, stderr the server log)
    python -m cgikit report --log-level DEBUG --log-file /tmp/cgikit.log

The report lists the environment variables, the exposed headers, the
decoded query string and the body (including every multipart part), as
text/plain. It is handy for checking what a web server really passes to
CGI programs.

=============================================================================
"""

import argparse
import io
import logging
import os
import sys
from typing import Dict, List, Optional, Sequence, Tuple

from . import __version__
from .config import CGIConfig
from .http.body import BodyAbsent, BodyBytes, BodyError, BodyMultipart
from .http.query import QueryAbsent, QueryError, QueryParsed
from .http.request import CGIRequest, RequestAssembler
from .http.response import EmptyResponse, FullResponse
from .log import setup_logging

logger = logging.getLogger("cgikit.cli")

FULL_BODY_LIMIT = 64
BODY_PREVIEW = 8
SIMULATED_BOUNDARY = "cgikit-0987654321asdfjkl"


# =============================================================================
# REPORT RENDERING
# =============================================================================

def _preview(data: bytes) -> str:
    """Whole payload if short, else ``head ... tail``."""
    if len(data) > FULL_BODY_LIMIT:
        head = data[:BODY_PREVIEW].decode("utf-8", errors="replace")
        tail = data[-BODY_PREVIEW:].decode("utf-8", errors="replace")
        return f"->|{head} ... {tail}|<-"
    return f"->|{data.decode('utf-8', errors='replace')}|<-"


def render_report(request: CGIRequest) -> str:
    """Plain-text description of everything in ``request``."""
    lines: List[str] = ["Environment Variables:"]
    for name, value in sorted(request.vars()):
        lines.append(f"    {name}: {value}")

    lines.append("Exposed Headers:")
    for name, value in sorted(request.headers()):
        lines.append(f"    {name}: {value}")
    lines.append("")

    query = request.query
    if isinstance(query, QueryAbsent):
        lines.append("No query string.")
    elif isinstance(query, QueryParsed):
        lines.append(f"Query string with {len(query)} parameter(s):")
        for name, value in sorted(query.params.items()):
            lines.append(f"    {name}={value}")
    elif isinstance(query, QueryError):
        lines.append(f"Query string error ({int(query.error.status_code)}): {query.error.details}")
    lines.append("")

    body = request.body
    if isinstance(body, BodyAbsent):
        lines.append("No body.")
    elif isinstance(body, BodyBytes):
        lines.append(f"{len(body.data)} bytes of body.")
    elif isinstance(body, BodyMultipart):
        lines.append(f"Multipart body with {len(body.parts)} parts.")
        if body.dropped:
            lines.append(f"({body.dropped} malformed part(s) dropped)")
        for index, part in enumerate(body.parts):
            lines.append("")
            lines.append(f"  Part {index}:")
            for name, value in part.headers.items():
                lines.append(f"    {name}: {value}")
            lines.append(f"    {len(part.body)} bytes of body.")
            lines.append(_preview(part.body))
    elif isinstance(body, BodyError):
        lines.append(f"Body error ({int(body.error.status_code)}): {body.error.details}")

    return "\n".join(lines) + "\n"


def report_response(request: CGIRequest) -> FullResponse:
    return (EmptyResponse(200)
        .with_header("Cache-Control", "no-store")
        .with_content_type("text/plain; charset=utf-8")
        .with_body(render_report(request)))


# =============================================================================
# SIMULATION
# =============================================================================

def build_multipart_body(
    fields: Sequence[Tuple[str, str]],
    files: Sequence[Tuple[str, bytes]],
    boundary: str = SIMULATED_BOUNDARY,
) -> bytes:
    """Encode form fields and files the way a browser would."""
    out = io.BytesIO()
    for name, value in fields:
        out.write(f"--{boundary}\r\n".encode())
        out.write(f'Content-Disposition: form-data; name="{name}"\r\n\r\n'.encode())
        out.write(value.encode("utf-8") + b"\r\n")
    for filename, data in files:
        out.write(f"--{boundary}\r\n".encode())
        out.write(
            f'Content-Disposition: form-data; name="{filename}"; '
            f'filename="{filename}"\r\n'.encode()
        )
        out.write(b"Content-Type: application/octet-stream\r\n\r\n")
        out.write(data + b"\r\n")
    out.write(f"--{boundary}--\r\n".encode())
    return out.getvalue()


def simulated_environ(
    body: bytes,
    query: Optional[str] = None,
    boundary: str = SIMULATED_BOUNDARY,
) -> Dict[str, str]:
    """A minimal CGI environment for a multipart POST of ``body``."""
    environ = {
        "GATEWAY_INTERFACE": "CGI/1.1",
        "REQUEST_METHOD": "POST",
        "SERVER_PROTOCOL": "HTTP/1.1",
        "SCRIPT_NAME": "/cgi-bin/cgikit",
        "REMOTE_ADDR": "127.0.0.1",
        "HTTP_CONTENT_TYPE": f"multipart/form-data; boundary={boundary}",
        "HTTP_CONTENT_LENGTH": str(len(body)),
        "HTTP_USER_AGENT": f"cgikit/{__version__}",
    }
    if query is not None:
        environ["QUERY_STRING"] = query
    return environ


def _parse_field(text: str) -> Tuple[str, str]:
    name, sep, value = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected name=value, got {text!r}")
    return name, value


# =============================================================================
# ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m cgikit",
        description="Diagnostic CGI program: reports what the web server passed in",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m cgikit report                          # run as a CGI script
  python -m cgikit simulate --field a=1 --file x   # fake a multipart POST
        """,
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: CGIKIT_LOG_LEVEL or WARNING)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Log line format (default: text)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Append logs to this file instead of stderr",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"cgikit {__version__}",
    )

    commands = parser.add_subparsers(dest="command")
    commands.add_parser("report", help="Answer the current CGI request with a report")

    simulate = commands.add_parser("simulate", help="Report on a fake multipart POST")
    simulate.add_argument(
        "--field", "-f",
        action="append",
        type=_parse_field,
        default=[],
        metavar="NAME=VALUE",
        help="Form field to include (repeatable)",
    )
    simulate.add_argument(
        "--file",
        action="append",
        default=[],
        metavar="PATH",
        help="File to upload (repeatable)",
    )
    simulate.add_argument(
        "--query", "-q",
        default=None,
        help="QUERY_STRING to simulate",
    )
    return parser


def _config_from_args(args: argparse.Namespace) -> CGIConfig:
    config = CGIConfig.from_env()
    if args.log_level:
        config.log_level = args.log_level
    if args.log_format:
        config.log_format = args.log_format
    if args.log_file:
        config.log_file = args.log_file
    config.validate()
    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = _config_from_args(args)
    except ValueError as e:
        # Logging is not configured yet; logging's last-resort handler
        # still puts this on stderr
        logger.error("invalid configuration: %s", e)
        if args.command == "simulate":
            return 2
        EmptyResponse(500).respond()
        return 1
    setup_logging(config)

    if args.command == "simulate":
        files = []
        for path in args.file:
            with open(path, "rb") as f:
                files.append((os.path.basename(path), f.read()))
        body = build_multipart_body(args.field, files)
        assembler = RequestAssembler(
            simulated_environ(body, args.query),
            io.BytesIO(body),
            config,
        )
        sys.stdout.write(render_report(assembler.assemble()))
        return 0

    try:
        request = RequestAssembler(config=config).assemble()
        report_response(request).respond()
    except Exception:
        logger.exception("report failed")
        EmptyResponse(500).respond()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
