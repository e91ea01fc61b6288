"""SessionLauncher: start the assistant inside a ready worktree.

A failed or unsuccessful session never rolls back the worktree; it is a
valid artifact whether or not a session ran.
"""

import os

from checkout.errors import CheckoutError
from checkout.session.claude_runner import ClaudeResult, ClaudeRunner
from checkout.session.command_builder import CommandBuilder
from checkout.session.terminal import terminal_tint


def read_prompt_file(path) -> str:
    """Contents of a UTF-8 prompt file, stripped.

    Raises:
        CheckoutError: If the file cannot be read or is not UTF-8.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().strip()
    except (OSError, UnicodeDecodeError) as e:
        raise CheckoutError(f"Could not read prompt file {path}: {e}")


PLAIN = "plain"
REVIEW = "review"
MODES = (PLAIN, REVIEW)


class SessionLauncher:
    """Launches the assistant with its working directory set to the worktree.

    Args:
        runner: ClaudeRunner or a test double with ``run_interactive``.
        command_builder: CommandBuilder for the configured assistant.
        tint: Whether to tint the terminal with the worktree color.
    """

    def __init__(self, runner=None, command_builder=None, tint=False):
        self._runner = runner or ClaudeRunner()
        self._command_builder = command_builder or CommandBuilder()
        self._tint = tint

    @classmethod
    def from_config(cls, config, runner=None) -> "SessionLauncher":
        return cls(
            runner=runner,
            command_builder=CommandBuilder(config.assistant_command, config.skill_namespace),
            tint=config.tint,
        )

    def build_command(self, record, mode=PLAIN, prompt_file=None):
        """Assistant command line for ``mode``.

        ``plain`` passes the contents of ``prompt_file`` when given, the
        checkout-pr slash command for PR worktrees, and no prompt otherwise.
        ``review`` passes the review-pr slash command.
        """
        if mode not in MODES:
            raise ValueError(f"Unknown session mode: {mode}")
        identifier = record.identifier
        if mode == REVIEW:
            if not identifier.is_pr:
                raise ValueError("review sessions need a pull request worktree")
            return self._command_builder.build_review_command(identifier.pr_number)
        if prompt_file:
            return self._command_builder.build_plain_command(read_prompt_file(prompt_file))
        if identifier.is_pr:
            return self._command_builder.build_checkout_pr_command(identifier.pr_number)
        return self._command_builder.build_plain_command()

    @staticmethod
    def session_env(record):
        env = dict(os.environ)
        env["CHECKOUT_WORKTREE"] = record.path
        env["CHECKOUT_IDENTIFIER"] = record.identifier.key
        env["CHECKOUT_COLOR"] = record.color.hex
        return env

    def launch(self, record, mode=PLAIN, prompt_file=None) -> ClaudeResult:
        """Run an interactive session in ``record.path`` and return its result.

        Raises:
            CheckoutError: If the prompt file cannot be read.
            CollaboratorFailure: If the assistant executable cannot be started.
        """
        cmd = self.build_command(record, mode, prompt_file)
        with terminal_tint(record.color, enabled=self._tint):
            return self._runner.run_interactive(cmd, cwd=record.path,
                                                env=self.session_env(record))
