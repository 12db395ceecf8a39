"""
Unit tests for configuration and logging setup.
"""

import json
import logging

import pytest

from cgikit.config import CGIConfig
from cgikit.log import JSONFormatter, setup_logging


class TestCGIConfig:
    """Tests for CGIConfig."""

    def test_defaults(self):
        config = CGIConfig()

        assert config.header_prefix == "HTTP_"
        assert config.use_meta_variables is True
        assert config.max_content_length is None
        assert config.log_level == "WARNING"

    def test_from_env(self):
        config = CGIConfig.from_env({
            "CGIKIT_MAX_CONTENT_LENGTH": "1024",
            "CGIKIT_USE_META_VARIABLES": "false",
            "CGIKIT_LOG_LEVEL": "DEBUG",
            "CGIKIT_LOG_FORMAT": "json",
            "CGIKIT_LOG_FILE": "/tmp/cgikit.log",
        })

        assert config.max_content_length == 1024
        assert config.use_meta_variables is False
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"
        assert config.log_file == "/tmp/cgikit.log"

    def test_from_env_ignores_unprefixed(self):
        config = CGIConfig.from_env({"LOG_LEVEL": "DEBUG", "CONTENT_LENGTH": "5"})

        assert config == CGIConfig()

    def test_from_env_bad_length(self):
        with pytest.raises(ValueError, match="CGIKIT_MAX_CONTENT_LENGTH"):
            CGIConfig.from_env({"CGIKIT_MAX_CONTENT_LENGTH": "10k"})

    def test_validate_ok(self):
        CGIConfig(max_content_length=0, log_level="debug").validate()

    @pytest.mark.parametrize("kwargs", [
        {"header_prefix": ""},
        {"max_content_length": -1},
        {"log_level": "LOUD"},
        {"log_format": "xml"},
    ])
    def test_validate_rejects(self, kwargs):
        with pytest.raises(ValueError):
            CGIConfig(**kwargs).validate()


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_level_and_single_handler(self):
        setup_logging(CGIConfig(log_level="DEBUG"))
        logger = setup_logging(CGIConfig(log_level="INFO"))

        assert logger.name == "cgikit"
        assert logger.level == logging.INFO
        assert len([h for h in logger.handlers if h.get_name() == "cgikit"]) == 1

    def test_log_file(self, tmp_path):
        path = tmp_path / "cgi.log"
        logger = setup_logging(CGIConfig(log_level="INFO", log_file=str(path)))

        logging.getLogger("cgikit.query").info("hello from a child logger")
        for handler in logger.handlers:
            handler.flush()

        text = path.read_text(encoding="utf-8")
        assert "[INFO] cgikit.query: hello from a child logger" in text

    def test_json_formatter(self):
        record = logging.LogRecord(
            "cgikit.multipart", logging.WARNING, __file__, 1,
            "dropping multipart chunk %d: %s", (0, "bad"), None,
        )

        entry = json.loads(JSONFormatter().format(record))

        assert entry["level"] == "WARNING"
        assert entry["logger"] == "cgikit.multipart"
        assert entry["message"] == "dropping multipart chunk 0: bad"
        assert "exception" not in entry
