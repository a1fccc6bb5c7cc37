"""
Pytest configuration for sbs tests

This module provides shared configuration for all tests.
"""

import shutil

import pytest


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "requires_tmux: mark test as requiring a tmux binary"
    )


def pytest_collection_modifyitems(config, items):
    """Skip tmux-dependent tests when tmux is not installed"""
    if shutil.which("tmux"):
        return
    skip_tmux = pytest.mark.skip(reason="tmux not installed or not in PATH")
    for item in items:
        if "requires_tmux" in item.keywords:
            item.add_marker(skip_tmux)
