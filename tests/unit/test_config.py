"""
Unit tests for config module.
"""

from pathlib import Path

import pytest
import yaml

from sbs import config
from sbs.config import SbsConfig


class TestLoadConfig:
    """Test config loading functionality."""

    def test_returns_empty_dict_when_no_file(self, tmp_path, monkeypatch):
        """Should return empty dict when config file doesn't exist."""
        monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "nonexistent.yaml")
        assert config.load_config() == {}

    def test_loads_valid_yaml(self, tmp_path, monkeypatch):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("status_tracking: false\nlog_refresh_interval_secs: 30\n")
        monkeypatch.setattr(config, "CONFIG_PATH", config_file)

        result = config.load_config()

        assert result == {"status_tracking": False, "log_refresh_interval_secs": 30}

    def test_returns_empty_dict_on_invalid_yaml(self, tmp_path, monkeypatch):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("invalid: yaml: content: [")
        monkeypatch.setattr(config, "CONFIG_PATH", config_file)
        assert config.load_config() == {}

    def test_returns_empty_dict_for_non_mapping(self, tmp_path, monkeypatch):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n")
        monkeypatch.setattr(config, "CONFIG_PATH", config_file)
        assert config.load_config() == {}

    def test_template_is_all_comments(self):
        """The init template parses to nothing, so defaults apply."""
        assert yaml.safe_load(config.CONFIG_TEMPLATE) is None


class TestSbsConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SBS_SESSIONS_FILE", raising=False)
        settings = SbsConfig.from_dict({})
        assert settings.status_tracking is True
        assert settings.status_refresh_interval_secs == 60
        assert settings.log_refresh_interval == 5
        assert settings.log_script_timeout == 5
        assert settings.sessions_path == config.DEFAULT_SESSIONS_PATH
        assert settings.command_logging is False
        assert settings.command_log_path is None

    def test_values_from_mapping(self):
        settings = SbsConfig.from_dict({
            "status_tracking": False,
            "status_refresh_interval_secs": 15,
            "command_logging": True,
            "command_log_level": "debug",
            "command_log_path": "~/sbs-commands.log",
        })
        assert settings.status_tracking is False
        assert settings.status_refresh_interval_secs == 15
        assert settings.command_logging is True
        assert settings.command_log_level == "debug"
        assert settings.command_log_path == Path("~/sbs-commands.log").expanduser()

    def test_mistyped_values_fall_back(self):
        settings = SbsConfig.from_dict({
            "status_tracking": "yes",
            "log_refresh_interval_secs": "fast",
            "status_timeout_seconds": True,
            "command_log_level": 3,
        })
        assert settings.status_tracking is True
        assert settings.log_refresh_interval_secs == 5
        assert settings.status_timeout_seconds == 5
        assert settings.command_log_level == "info"

    def test_sessions_file_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SBS_SESSIONS_FILE", str(tmp_path / "s.json"))
        settings = SbsConfig.from_dict({"sessions_path": "/ignored.json"})
        assert settings.sessions_path == tmp_path / "s.json"

    def test_load_reads_config_path(self, tmp_path, monkeypatch):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("status_refresh_interval_secs: 7\n")
        monkeypatch.setattr(config, "CONFIG_PATH", config_file)
        assert SbsConfig.load().status_refresh_interval_secs == 7

    def test_to_dict_is_plain(self):
        data = SbsConfig(sessions_path=Path("/x/sessions.json")).to_dict()
        assert data["sessions_path"] == "/x/sessions.json"
        assert data["command_log_path"] is None


class TestLogRefreshInterval:
    @pytest.mark.parametrize("configured,expected", [
        (0, 5),
        (1, 2),
        (2, 2),
        (30, 30),
        (120, 120),
        (500, 120),
        (-3, 2),
    ])
    def test_defaulted_and_clamped(self, configured, expected):
        assert SbsConfig(log_refresh_interval_secs=configured).log_refresh_interval == expected


class TestLogScriptTimeout:
    def test_uses_status_timeout(self):
        assert SbsConfig(status_timeout_seconds=3).log_script_timeout == 3

    def test_non_positive_uses_default(self):
        assert SbsConfig(status_timeout_seconds=0).log_script_timeout == config.LOG_SCRIPT_DEFAULT_TIMEOUT
