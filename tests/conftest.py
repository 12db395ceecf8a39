"""
pytest configuration and fixtures.
"""

import io
import logging
from typing import Callable, Dict, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cgikit import CGIConfig, CGIRequest, RequestAssembler


BOUNDARY = "XYZ"


@pytest.fixture(autouse=True)
def reset_cgikit_logger():
    """Remove handlers installed by setup_logging() after each test."""
    yield
    logger = logging.getLogger("cgikit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def boundary() -> str:
    return BOUNDARY


@pytest.fixture
def two_part_body() -> bytes:
    """Multipart body with a text field and a file, closed with --XYZ--."""
    return (
        b"--XYZ\r\n"
        b'Content-Disposition: form-data; name="greeting"\r\n'
        b"\r\n"
        b"hello world\r\n"
        b"--XYZ\r\n"
        b'Content-Disposition: form-data; name="upload"; filename="a.bin"\r\n'
        b"Content-Type:   application/octet-stream  \r\n"
        b"\r\n"
        b"\x00\x01\r\n\xff binary\r\n"
        b"--XYZ--\r\n"
    )


@pytest.fixture
def cgi_environ() -> Dict[str, str]:
    """Typical environment for a GET request."""
    return {
        "GATEWAY_INTERFACE": "CGI/1.1",
        "REQUEST_METHOD": "GET",
        "SERVER_PROTOCOL": "HTTP/1.1",
        "REMOTE_ADDR": "192.0.2.10",
        "QUERY_STRING": "page=2&sort=name",
        "HTTP_HOST": "example.com",
        "HTTP_USER_AGENT": "pytest",
        "HTTP_X_CUSTOM_HEADER": "custom",
    }


@pytest.fixture
def assemble() -> Callable[..., CGIRequest]:
    """Assemble a request from a dict and optional body bytes."""

    def _assemble(
        environ: Dict[str, str],
        body: bytes = b"",
        config: Optional[CGIConfig] = None,
        **kwargs,
    ) -> CGIRequest:
        return RequestAssembler(environ, io.BytesIO(body), config, **kwargs).assemble()

    return _assemble
