"""
Tests for hierarchy_modules/config.py

Tests configuration management, API settings and logging functions.
"""

import pytest
import json
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from hierarchy_modules import config
from hierarchy_modules.errors import ConfigurationError


# ============================================================================
# CONFIG LOAD/SAVE TESTS
# ============================================================================

class TestConfigManagement:
    """Tests for configuration file management."""

    def test_load_config_nonexistent_creates_defaults(self, temp_dir, monkeypatch):
        """Test loading config when file doesn't exist writes and returns defaults."""
        config_path = temp_dir / 'config.json'
        monkeypatch.setattr(config, 'CONFIG_FILE', str(config_path))

        result = config.load_config()

        assert result["API_BASE_URL"] == ""
        assert result["REQUEST_TIMEOUT"] == config.DEFAULT_TIMEOUT
        assert config_path.exists()

    def test_save_and_load_config(self, temp_config_file, monkeypatch):
        """Test saving and loading configuration."""
        monkeypatch.setattr(config, 'CONFIG_FILE', str(temp_config_file))

        loaded_config = config.load_config()
        assert loaded_config["API_BASE_URL"] == "https://catalog.example.test/api"

        loaded_config["PAGE_LIMIT"] = 200
        config.save_config(loaded_config)

        reloaded = config.load_config()
        assert reloaded["PAGE_LIMIT"] == 200

    def test_missing_fields_filled_from_defaults(self, temp_config_file, monkeypatch):
        """Test that keys absent from an older file are added."""
        monkeypatch.setattr(config, 'CONFIG_FILE', str(temp_config_file))
        loaded_config = config.load_config()

        assert loaded_config["PAGE_LIMIT"] == config.DEFAULT_PAGE_LIMIT
        assert "ADMIN_TOKEN" in loaded_config

    def test_migrate_old_api_url_field(self, temp_dir, monkeypatch):
        """Test migration of API_URL to API_BASE_URL."""
        config_path = temp_dir / "config.json"
        monkeypatch.setattr(config, 'CONFIG_FILE', str(config_path))

        with open(config_path, 'w') as f:
            json.dump({"API_URL": "https://old.example.test/api"}, f)

        loaded = config.load_config()

        assert loaded["API_BASE_URL"] == "https://old.example.test/api"
        assert "API_URL" not in loaded

        with open(config_path) as f:
            on_disk = json.load(f)
        assert "API_URL" not in on_disk

    def test_load_config_json_decode_error(self, temp_dir, monkeypatch, caplog):
        """Test that load_config handles corrupted JSON gracefully."""
        config_path = temp_dir / "config.json"
        monkeypatch.setattr(config, 'CONFIG_FILE', str(config_path))

        with open(config_path, 'w') as f:
            f.write("{ invalid json }")

        with caplog.at_level(logging.ERROR):
            result = config.load_config()

        assert result == config.default_config()
        assert "Failed to parse config.json" in caplog.text

    def test_save_config_io_error(self, monkeypatch, caplog):
        """Test that save_config logs IO errors gracefully."""
        monkeypatch.setattr(config, 'CONFIG_FILE', '/nonexistent/path/config.json')

        with caplog.at_level(logging.ERROR):
            config.save_config({"test": "data"})

        assert "Failed to write config.json" in caplog.text


# ============================================================================
# API SETTINGS TESTS
# ============================================================================

class TestGetApiSettings:
    """Tests for get_api_settings()."""

    def test_builds_url_headers_and_timeout(self, cfg):
        """Test settings from a complete configuration."""
        base_url, headers, timeout = config.get_api_settings(cfg)

        assert base_url == "https://catalog.example.test/api"
        assert headers["Authorization"] == "Bearer test_token_12345"
        assert headers["Content-Type"] == "application/json"
        assert timeout == 15

    def test_trailing_slash_removed(self, cfg):
        """Test that a trailing slash on the base URL is stripped."""
        cfg["API_BASE_URL"] = "https://catalog.example.test/api/ "
        base_url, _, _ = config.get_api_settings(cfg)
        assert base_url == "https://catalog.example.test/api"

    def test_no_token_no_authorization_header(self, cfg):
        """Test that a blank token sends no Authorization header."""
        cfg["ADMIN_TOKEN"] = ""
        _, headers, _ = config.get_api_settings(cfg)
        assert "Authorization" not in headers

    def test_missing_base_url_raises(self):
        """Test that a missing base URL is a configuration error."""
        with pytest.raises(ConfigurationError):
            config.get_api_settings({})

    def test_invalid_timeout_uses_default(self, cfg, caplog):
        """Test that a non-numeric timeout falls back to the default."""
        cfg["REQUEST_TIMEOUT"] = "soon"
        with caplog.at_level(logging.WARNING):
            _, _, timeout = config.get_api_settings(cfg)

        assert timeout == config.DEFAULT_TIMEOUT
        assert "Invalid REQUEST_TIMEOUT" in caplog.text


# ============================================================================
# LOGGING SETUP TESTS
# ============================================================================

@pytest.mark.usefixtures("restore_root_logging")
class TestLoggingSetup:
    """Tests for setup_logging()."""

    def test_setup_logging_creates_log_file(self, temp_dir):
        """Test that setup_logging creates the log file and writes to it."""
        log_file = temp_dir / "test.log"
        config.setup_logging(str(log_file))

        logging.debug("debug line for file")
        for handler in logging.root.handlers:
            handler.flush()

        assert log_file.exists()
        assert "debug line for file" in log_file.read_text(encoding="utf-8")

    def test_setup_logging_console_only(self):
        """Test that an empty log path installs only the console handler."""
        config.setup_logging("")

        assert len(logging.root.handlers) == 1
        assert isinstance(logging.root.handlers[0], logging.StreamHandler)

    def test_setup_logging_installs_excepthook(self, temp_dir):
        """Test that the global exception hook is installed."""
        config.setup_logging(str(temp_dir / "test.log"))
        assert sys.excepthook is not sys.__excepthook__


# ============================================================================
# LOG AND STATUS TESTS
# ============================================================================

class TestLogAndStatus:
    """Tests for log_and_status()."""

    def test_log_and_status_with_status_fn(self, mock_status_fn, caplog):
        """Test that both log and status function receive the message."""
        with caplog.at_level(logging.INFO):
            config.log_and_status(mock_status_fn, "Resolved 2 parents", ui_msg="2 parents")

        assert "Resolved 2 parents" in caplog.text
        assert mock_status_fn.messages == ["2 parents"]

    def test_log_and_status_none_status_fn(self, caplog):
        """Test that a missing status function only logs."""
        with caplog.at_level(logging.INFO):
            config.log_and_status(None, "Only logged")

        assert "Only logged" in caplog.text

    def test_log_and_status_error_level(self, mock_status_fn, caplog):
        """Test error-level messages."""
        with caplog.at_level(logging.ERROR):
            config.log_and_status(mock_status_fn, "Save failed", level="error")

        assert caplog.records[-1].levelname == "ERROR"

    def test_log_and_status_passes_message_through(self, mock_status_fn):
        """Test that the full message reaches the operator when no ui_msg is given."""
        config.log_and_status(mock_status_fn, "Network error calling GET https://catalog.example.test/api/x")
        assert mock_status_fn.messages == ["Network error calling GET https://catalog.example.test/api/x"]

    def test_log_and_status_handles_exception_in_status_fn(self, caplog):
        """Test that a failing status function is logged, not raised."""
        def broken(msg):
            raise RuntimeError("status line gone")

        with caplog.at_level(logging.WARNING):
            config.log_and_status(broken, "Still logged")

        assert "status_fn raised" in caplog.text
