"""Error taxonomy for checkout.

Every error is a ClickException, so an uncaught one surfaces as
``Error: <message>`` with exit code 1.
"""

from typing import List, Optional

import click


class CheckoutError(click.ClickException):
    """Base class for all checkout errors."""


class InvalidIdentifier(CheckoutError):
    """Malformed PR number, PR URL or branch name. Raised before any I/O."""


class AlreadyExists(CheckoutError):
    """The target worktree path exists but is not a worktree of the repo."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"{path} already exists and is not a worktree of this repository")


class NotFound(CheckoutError):
    """Operation on a repository or worktree that does not exist."""


class DirtyWorktree(CheckoutError):
    """Removal refused because the worktree has uncommitted changes."""

    def __init__(self, path: str, changes: Optional[List[str]] = None):
        self.path = path
        self.changes = changes or []
        super().__init__(f"{path} has uncommitted changes")


class CollaboratorFailure(CheckoutError):
    """git, gh or the assistant process failed or could not be started."""

    def __init__(self, command, message: str, stderr: str = ""):
        self.command = list(command) if not isinstance(command, str) else [command]
        self.stderr = stderr.strip() if stderr else ""
        text = f"{' '.join(self.command)}: {message}"
        if self.stderr:
            text += f"\n{self.stderr}"
        super().__init__(text)


class AuxiliarySetupFailure(CheckoutError):
    """A post-create setup step failed. Never fatal to create."""

    def __init__(self, step: str, message: str):
        self.step = step
        super().__init__(f"{step}: {message}")
