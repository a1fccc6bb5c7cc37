"""Tests for application context wiring."""

import logging

import pytest

from sbs.cleanup import CleanupManager
from sbs.config import SbsConfig
from sbs.context import AppContext, configure_command_logging, find_repository_root
from sbs.implementations import RealSandbox, RealTmux
from sbs.log_executor import LogScriptExecutor
from sbs.logging_config import get_logger
from sbs.status_constants import STATUS_STALE, get_status_color, get_status_symbol
from sbs.status_detector import StatusDetector


@pytest.fixture
def commands_logger():
    logger = get_logger("commands")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


class TestAppContext:
    def test_builds_collaborators(self, app_context):
        assert isinstance(app_context.detector, StatusDetector)
        assert isinstance(app_context.cleanup, CleanupManager)
        assert isinstance(app_context.log_executor, LogScriptExecutor)
        assert app_context.cleanup.store is app_context.store

    def test_detector_uses_context_mocks(self, app_context, make_record):
        record = make_record("repo-1")
        app_context.tmux.new_session("sbs-repo-1")
        app_context.sandbox.create("sbs-repo-1")
        assert app_context.detector.detect_session_status(record).is_active

    def test_create_uses_real_collaborators(self, tmp_path, commands_logger):
        ctx = AppContext.create(
            config=SbsConfig(sessions_path=tmp_path / "s.json"),
            repository_root="/repo",
        )
        assert isinstance(ctx.tmux, RealTmux)
        assert isinstance(ctx.sandbox, RealSandbox)
        assert ctx.store.path == tmp_path / "s.json"
        assert ctx.repository_root == "/repo"


class TestCommandLogging:
    def test_disabled_by_default(self, commands_logger):
        configure_command_logging(SbsConfig())
        assert commands_logger.level == logging.WARNING
        assert not commands_logger.isEnabledFor(logging.INFO)

    def test_enabled_writes_file(self, tmp_path, commands_logger):
        log_path = tmp_path / "logs" / "commands.log"
        log = configure_command_logging(
            SbsConfig(command_logging=True, command_log_level="debug", command_log_path=log_path)
        )

        log.info("command finished", command="sandbox list", exit_code=0)
        for handler in commands_logger.handlers:
            handler.flush()

        assert commands_logger.level == logging.DEBUG
        assert "command finished | command=sandbox list exit_code=0" in log_path.read_text()


class TestFindRepositoryRoot:
    def test_finds_enclosing_repo(self, tmp_path):
        (tmp_path / ".git").mkdir()
        nested = tmp_path / "src" / "pkg"
        nested.mkdir(parents=True)
        assert find_repository_root(str(nested)) == str(tmp_path)

    def test_worktree_git_file(self, tmp_path):
        (tmp_path / ".git").write_text("gitdir: /elsewhere\n")
        assert find_repository_root(str(tmp_path)) == str(tmp_path)


class TestStatusConstants:
    def test_symbols(self):
        assert get_status_symbol(STATUS_STALE) == ("○", "red")
        assert get_status_symbol("bogus") == ("?", "dim")
        assert get_status_color(STATUS_STALE) == "red"
