"""Shared fixtures for session tests."""

import os
import sys

import pytest

# Ensure tests/session/ is on sys.path so test files can import
# fake_claude_runner unambiguously (avoids conftest module name collisions).
sys.path.insert(0, os.path.dirname(__file__))

from fake_claude_runner import FakeClaudeRunner  # noqa: E402


@pytest.fixture
def fake_runner():
    return FakeClaudeRunner()
