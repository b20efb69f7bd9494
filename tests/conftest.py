"""Shared pytest fixtures for the NoteG test suite."""

from __future__ import annotations

import shutil

import pytest


@pytest.fixture
def needs_node() -> str:
    """Skip test if no Node.js executable is available."""
    node = shutil.which("node")
    if node is None:
        pytest.skip("no node executable available")
    return node
