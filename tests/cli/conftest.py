"""Shared fixtures for CLI tests."""

import os
import sys

import pytest
from click.testing import CliRunner

# The fakes and git builders live beside the worktree and session tests.
_TESTS_DIR = os.path.dirname(os.path.dirname(__file__))
sys.path.insert(0, os.path.join(_TESTS_DIR, "worktree"))
sys.path.insert(0, os.path.join(_TESTS_DIR, "session"))

from checkout.cli import main  # noqa: E402
from fake_claude_runner import FakeClaudeRunner  # noqa: E402
from fake_github_client import FakeGitHubClient  # noqa: E402
from git_fixtures import build_git_setup  # noqa: E402


class CheckoutCli:
    """Invokes the checkout CLI against a temporary repository with fake gh and claude."""

    def __init__(self, git_setup, fake_gh, fake_runner):
        self.git_setup = git_setup
        self.fake_gh = fake_gh
        self.fake_runner = fake_runner
        self.env = {
            "CHECKOUT_REPO": git_setup.main_dir,
            "CHECKOUT_WORKTREE_ROOT": git_setup.worktree_root,
            "CHECKOUT_BRANCH_PREFIX": "alice",
            "CHECKOUT_SKILL_NAMESPACE": "alice",
            "CHECKOUT_TRUST_COMMAND": "",
            "CHECKOUT_TINT": "0",
        }

    def path(self, dirname):
        return os.path.join(self.git_setup.worktree_root, dirname)

    def invoke(self, *args, input=None):
        return CliRunner().invoke(main, list(args), env=self.env, input=input)


@pytest.fixture
def cli(tmp_path, mocker):
    fake_gh = FakeGitHubClient()
    fake_gh.add_pr(7, "feature/login", title="Add login")
    fake_runner = FakeClaudeRunner()
    mocker.patch("checkout.worktree.cli.GitHubClient", return_value=fake_gh)
    mocker.patch("checkout.worktree.cli.ClaudeRunner", return_value=fake_runner)
    return CheckoutCli(build_git_setup(tmp_path), fake_gh, fake_runner)
