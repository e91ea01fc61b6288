"""Shared fixtures for worktree tests."""

import os
import sys

import pytest

from checkout.config import CheckoutConfig
from checkout.worktree.git_repository import GitRepository
from checkout.worktree.lifecycle import WorktreeManager

# Ensure tests/worktree/ is on sys.path so test files can import
# fake_github_client and git_fixtures unambiguously (avoids conftest
# module name collisions).
sys.path.insert(0, os.path.dirname(__file__))

from fake_github_client import FakeGitHubClient  # noqa: E402
from git_fixtures import build_git_setup  # noqa: E402


@pytest.fixture
def git_setup(tmp_path):
    return build_git_setup(tmp_path)


@pytest.fixture
def checkout_config(git_setup):
    return CheckoutConfig(
        repo=git_setup.main_dir,
        worktree_root=git_setup.worktree_root,
        branch_prefix="alice",
        skill_namespace="alice",
        trust_command=[],
        tint=False,
    )


@pytest.fixture
def fake_gh():
    fake = FakeGitHubClient()
    fake.add_pr(7, "feature/login", title="Add login")
    fake.add_pr(9, "contrib-fix", title="Fix from a fork", cross_repository=True)
    return fake


@pytest.fixture
def manager(git_setup, checkout_config, fake_gh):
    return WorktreeManager(checkout_config, GitRepository.open(git_setup.main_dir), fake_gh)
