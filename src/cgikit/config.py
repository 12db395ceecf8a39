"""
=============================================================================
CGI CONFIGURATION
=============================================================================

Settings for request assembly and logging.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m cgikit --log-level DEBUG                        │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── CGIKIT_LOG_LEVEL=DEBUG (set in the web server config)     │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    └─────────────────────────────────────────────────────────────────────┘

A CGI program is started fresh for every request, so "configuration" is
whatever the web server puts in the environment next to the request
variables. The CGIKIT_ prefix keeps the two apart; CGIKIT_* variables
still show up in request.vars() like any other variable.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "CGIKIT_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMATS = ("text", "json")
_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class CGIConfig:
    """
    Configuration for request assembly.

    Defaults reproduce plain CGI behaviour: no body size limit and only
    warnings logged.
    """

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST ASSEMBLY
    # ─────────────────────────────────────────────────────────────────────

    header_prefix: str = "HTTP_"
    """
    Environment variables starting with this prefix are request headers.
    HTTP_USER_AGENT → user-agent.
    """

    use_meta_variables: bool = True
    """
    Fall back to the RFC 3875 meta-variables CONTENT_LENGTH and
    CONTENT_TYPE when no HTTP_CONTENT_LENGTH / HTTP_CONTENT_TYPE header is
    exposed. Most servers (Apache, nginx + fcgiwrap) only set the
    meta-variables.
    """

    max_content_length: Optional[int] = None
    """
    Refuse (413) bodies larger than this many bytes without reading them.
    None = no limit.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "WARNING"
    """DEBUG traces every classification and boundary decision."""

    log_format: str = "text"
    """'text' or 'json' (one object per line)."""

    log_file: Optional[str] = None
    """
    Append logs here instead of stderr. stdout is never used: it carries
    the response.
    """

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CGIConfig":
        """
        Create configuration from CGIKIT_* environment variables.

        CGIKIT_MAX_CONTENT_LENGTH   Body size limit in bytes
        CGIKIT_USE_META_VARIABLES   1/0, true/false
        CGIKIT_LOG_LEVEL            DEBUG, INFO, WARNING, ...
        CGIKIT_LOG_FORMAT           text or json
        CGIKIT_LOG_FILE             Path to a log file
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            return env.get(ENV_PREFIX + name)

        max_length = get("MAX_CONTENT_LENGTH")
        try:
            max_content_length = int(max_length) if max_length else None
        except ValueError:
            raise ValueError(
                f"{ENV_PREFIX}MAX_CONTENT_LENGTH must be an integer, got {max_length!r}"
            )

        meta = get("USE_META_VARIABLES")
        return cls(
            use_meta_variables=True if meta is None else meta.lower() in _TRUE_VALUES,
            max_content_length=max_content_length,
            log_level=get("LOG_LEVEL") or "WARNING",
            log_format=get("LOG_FORMAT") or "text",
            log_file=get("LOG_FILE"),
        )

    def validate(self) -> None:
        """Raise ValueError for settings that can't work."""
        if not self.header_prefix:
            raise ValueError("header_prefix must not be empty")

        if self.max_content_length is not None and self.max_content_length < 0:
            raise ValueError("max_content_length must be >= 0")

        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level: {self.log_level}. "
                f"Must be one of {', '.join(_LOG_LEVELS)}."
            )

        if self.log_format not in _LOG_FORMATS:
            raise ValueError("log_format must be 'text' or 'json'")
