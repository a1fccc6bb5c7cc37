"""
Application context.

Bundles the collaborators every front end (TUI, CLI) needs so they can be
built once at startup and handed to components explicitly. Tests build an
AppContext around MockTmux / MockSandbox and a temporary SessionStore.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .cleanup import CleanupManager
from .config import SbsConfig
from .implementations import RealSandbox, RealTmux, SandboxProbe, TmuxSessionProbe
from .log_executor import LogScriptExecutor
from .logging_config import (
    StructuredLogger,
    get_logger,
    get_structured_logger,
    level_from_name,
)
from .protocols import SandboxInterface, TmuxInterface
from .session_store import SessionStore
from .status_detector import StatusDetector


@dataclass
class AppContext:
    config: SbsConfig
    store: SessionStore
    tmux: TmuxInterface
    sandbox: SandboxInterface
    logger: StructuredLogger
    repository_root: Optional[str] = None

    def __post_init__(self):
        self.detector = StatusDetector(
            TmuxSessionProbe(self.tmux),
            SandboxProbe(self.sandbox),
            logger=get_logger("status_detector"),
        )
        self.cleanup = CleanupManager(
            self.tmux,
            self.sandbox,
            self.store,
            self.detector,
            logger=self.logger.with_context(component="cleanup"),
        )
        self.log_executor = LogScriptExecutor(
            logger=self.logger.with_context(component="log_executor"),
        )

    @classmethod
    def create(
        cls,
        config: Optional[SbsConfig] = None,
        repository_root: Optional[str] = None,
    ) -> "AppContext":
        """Build the production context (real tmux and sandbox)."""
        config = config or SbsConfig.load()
        command_log = configure_command_logging(config)
        return cls(
            config=config,
            store=SessionStore(config.sessions_path),
            tmux=RealTmux(logger=command_log),
            sandbox=RealSandbox(logger=command_log),
            logger=get_structured_logger("core"),
            repository_root=repository_root,
        )


def configure_command_logging(config: SbsConfig) -> StructuredLogger:
    """Set up the logger external command invocations are recorded on.

    With command_logging off the logger stays at WARNING, so the per-command
    info records are dropped.
    """
    logger = get_logger("commands")
    if not config.command_logging:
        logger.setLevel(logging.WARNING)
        return StructuredLogger(logger)

    logger.setLevel(level_from_name(config.command_log_level, logging.INFO))
    if config.command_log_path is not None:
        config.command_log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(config.command_log_path)
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(handler)
    return StructuredLogger(logger)


def find_repository_root(start: Optional[str] = None) -> Optional[str]:
    """Find the git repository root containing `start` (default: cwd)."""
    path = os.path.abspath(start or os.getcwd())
    while True:
        if os.path.exists(os.path.join(path, ".git")):
            return path
        parent = os.path.dirname(path)
        if parent == path:
            return None
        path = parent
