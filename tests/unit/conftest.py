"""
Unit test configuration for sbs.

Provides session records, a temporary session store and an AppContext
wired to in-memory tmux and sandbox mocks.
"""

import logging

import pytest

from sbs.config import SbsConfig
from sbs.context import AppContext
from sbs.interfaces import MockSandbox, MockTmux
from sbs.logging_config import get_structured_logger
from sbs.session_store import SessionRecord, SessionStore

REPO_ROOT = "/home/dev/repo"


def make_record(namespaced_id: str = "repo-42", **overrides) -> SessionRecord:
    """Build a SessionRecord with realistic defaults."""
    fields = dict(
        namespaced_id=namespaced_id,
        issue_number=42,
        issue_title=f"Fix issue {namespaced_id}",
        repository_name="repo",
        repository_root=REPO_ROOT,
        branch=f"issue-{namespaced_id}",
        worktree_path=f"/home/dev/.sbs/worktrees/{namespaced_id}",
        tmux_session=f"sbs-{namespaced_id}",
        sandbox_name=f"sbs-{namespaced_id}",
        last_activity="2026-10-18T10:00:00Z",
        created_at="2026-10-17T09:00:00Z",
    )
    fields.update(overrides)
    return SessionRecord(**fields)


@pytest.fixture
def store(tmp_path):
    return SessionStore(tmp_path / "sessions.json")


@pytest.fixture
def tmux():
    return MockTmux()


@pytest.fixture
def sandbox():
    return MockSandbox()


@pytest.fixture
def app_context(tmp_path, store, tmux, sandbox):
    """AppContext over mocks, inside a repository."""
    config = SbsConfig(
        sessions_path=store.path,
        status_tracking=False,
        log_refresh_interval_secs=2,
    )
    return AppContext(
        config=config,
        store=store,
        tmux=tmux,
        sandbox=sandbox,
        logger=get_structured_logger("test"),
        repository_root=REPO_ROOT,
    )


@pytest.fixture(autouse=True)
def reset_sbs_logging():
    """Undo logging setup done by the code under test."""
    yield
    logger = logging.getLogger("sbs")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture(name="make_record")
def make_record_fixture():
    return make_record
