"""
Configuration for sbs.

Config lives at ~/.config/sbs/config.yaml (override with SBS_CONFIG).
A missing, unreadable or malformed file yields the defaults; sbs never
refuses to start because of its config file.
"""

import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_DIR = Path.home() / ".config" / "sbs"
CONFIG_PATH = Path(os.environ.get("SBS_CONFIG", CONFIG_DIR / "config.yaml"))
DEFAULT_SESSIONS_PATH = CONFIG_DIR / "sessions.json"

# Log view auto-refresh bounds (seconds)
LOG_REFRESH_DEFAULT = 5
LOG_REFRESH_MIN = 2
LOG_REFRESH_MAX = 120

# Timeout for a single log script run when status_timeout_seconds is unset
LOG_SCRIPT_DEFAULT_TIMEOUT = 10


CONFIG_TEMPLATE = """\
# sbs configuration
# Location: ~/.config/sbs/config.yaml

# Periodically re-check tmux/sandbox state in the TUI
# status_tracking: true
# status_refresh_interval_secs: 60

# Log view (press l in the TUI)
# log_refresh_interval_secs: 5   # clamped to 2..120
# status_timeout_seconds: 5      # timeout for one run of .hooks/log

# Where session metadata is stored
# sessions_path: ~/.config/sbs/sessions.json

# External command logging (tmux / sandbox invocations)
# command_logging: false
# command_log_level: info
# command_log_path: ~/.config/sbs/logs/commands.log
"""


def load_config() -> Dict[str, Any]:
    """Load the raw config mapping.

    Returns:
        The parsed YAML mapping, or {} if the file is missing or invalid
    """
    if not CONFIG_PATH.exists():
        return {}
    try:
        with open(CONFIG_PATH) as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, OSError):
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def _int_setting(data: Dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value


def _bool_setting(data: Dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    return value if isinstance(value, bool) else default


def _path_setting(data: Dict[str, Any], key: str, default: Optional[Path]) -> Optional[Path]:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        return default
    return Path(value).expanduser()


@dataclass
class SbsConfig:
    """Typed view over config.yaml with defaults applied."""

    status_tracking: bool = True
    status_refresh_interval_secs: int = 60
    log_refresh_interval_secs: int = LOG_REFRESH_DEFAULT
    status_timeout_seconds: int = 5
    sessions_path: Path = field(default_factory=lambda: DEFAULT_SESSIONS_PATH)
    command_logging: bool = False
    command_log_level: str = "info"
    command_log_path: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SbsConfig":
        """Build a config from a raw mapping, ignoring unknown or mistyped keys."""
        defaults = cls()
        sessions_path = _path_setting(data, "sessions_path", defaults.sessions_path)
        env_sessions = os.environ.get("SBS_SESSIONS_FILE")
        if env_sessions:
            sessions_path = Path(env_sessions).expanduser()

        level = data.get("command_log_level", defaults.command_log_level)
        if not isinstance(level, str):
            level = defaults.command_log_level

        return cls(
            status_tracking=_bool_setting(data, "status_tracking", defaults.status_tracking),
            status_refresh_interval_secs=_int_setting(
                data, "status_refresh_interval_secs", defaults.status_refresh_interval_secs
            ),
            log_refresh_interval_secs=_int_setting(
                data, "log_refresh_interval_secs", defaults.log_refresh_interval_secs
            ),
            status_timeout_seconds=_int_setting(
                data, "status_timeout_seconds", defaults.status_timeout_seconds
            ),
            sessions_path=sessions_path,
            command_logging=_bool_setting(data, "command_logging", defaults.command_logging),
            command_log_level=level,
            command_log_path=_path_setting(data, "command_log_path", None),
        )

    @classmethod
    def load(cls) -> "SbsConfig":
        """Load config.yaml (defaults when absent)."""
        return cls.from_dict(load_config())

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["sessions_path"] = str(self.sessions_path)
        data["command_log_path"] = str(self.command_log_path) if self.command_log_path else None
        return data

    @property
    def log_refresh_interval(self) -> int:
        """Log view refresh interval in seconds, defaulted and clamped to [2, 120]."""
        secs = self.log_refresh_interval_secs or LOG_REFRESH_DEFAULT
        return max(LOG_REFRESH_MIN, min(LOG_REFRESH_MAX, secs))

    @property
    def log_script_timeout(self) -> int:
        """Timeout for one log script run."""
        if self.status_timeout_seconds > 0:
            return self.status_timeout_seconds
        return LOG_SCRIPT_DEFAULT_TIMEOUT
