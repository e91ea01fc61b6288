"""ClaudeRunner: runs the assistant process interactively in a worktree.

Provides module-level run_claude_interactive() plus a ClaudeRunner class
that delegates to it, so tests can substitute FakeClaudeRunner.
"""

import subprocess
from dataclasses import dataclass
from typing import List, Mapping, Optional

from checkout.errors import CollaboratorFailure


@dataclass
class ClaudeResult:
    """Result of an assistant session."""
    returncode: int


def run_claude_interactive(cmd: List[str], cwd: str,
                           env: Optional[Mapping[str, str]] = None) -> ClaudeResult:
    """Run the assistant interactively, inheriting the terminal.

    The assistant needs direct access to the terminal for its TUI, so
    stdout and stderr are not captured.

    Raises:
        CollaboratorFailure: If the executable cannot be started.
    """
    try:
        result = subprocess.run(cmd, cwd=cwd, env=env)
    except OSError as e:
        raise CollaboratorFailure(cmd[:1], f"Failed to spawn {cmd[0]}: {e}")
    return ClaudeResult(returncode=result.returncode)


class ClaudeRunner:
    """Delegates to the module-level run function."""

    def run_interactive(self, cmd: List[str], cwd: str,
                        env: Optional[Mapping[str, str]] = None) -> ClaudeResult:
        return run_claude_interactive(cmd, cwd=cwd, env=env)
