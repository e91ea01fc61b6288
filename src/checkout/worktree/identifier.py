"""WorktreeIdentifier value object and input parsing.

Parsing rejects malformed input with InvalidIdentifier before any
git or gh call is made.
"""

import re
from dataclasses import dataclass

from checkout.errors import InvalidIdentifier

PR = "pr"
BRANCH = "branch"
PR_BRANCH_NAMESPACE = "pr/"

_PR_NUMBER = re.compile(r"^[0-9]+$")
_PR_URL_PATTERN = re.compile(r"/pull/([0-9]+)")
_BRANCH_CHARS = re.compile(r"^[A-Za-z0-9._/-]+$")


@dataclass(frozen=True)
class WorktreeIdentifier:
    """Either a PR number or a branch name, never both."""

    kind: str
    value: str

    @property
    def is_pr(self) -> bool:
        return self.kind == PR

    @property
    def pr_number(self) -> int:
        if not self.is_pr:
            raise ValueError(f"{self.key} is not a pull request identifier")
        return int(self.value)

    @property
    def key(self) -> str:
        return f"{self.kind}:{self.value}"

    def __str__(self) -> str:
        if self.is_pr:
            return f"PR #{self.value}"
        return self.value


def is_pr_number(text: str) -> bool:
    """True for a non-empty run of ASCII digits only."""
    return bool(_PR_NUMBER.match(text))


def parse_pr_identifier(text: str) -> WorktreeIdentifier:
    """Parse a PR number (``123``) or a GitHub PR URL (``.../pull/123``)."""
    stripped = text.strip()
    if is_pr_number(stripped):
        number = int(stripped)
    else:
        match = _PR_URL_PATTERN.search(stripped)
        if not match:
            raise InvalidIdentifier(
                f"Could not parse PR number from '{text}'. Expected a number or GitHub PR URL."
            )
        number = int(match.group(1))
    if number <= 0:
        raise InvalidIdentifier(f"PR number must be positive, got '{text}'")
    return WorktreeIdentifier(PR, str(number))


def _branch_name_problem(name: str):
    if not name:
        return "branch name is empty"
    if not _BRANCH_CHARS.match(name):
        return "only letters, digits, '.', '_', '-' and '/' are allowed"
    if name.startswith(("-", ".", "/")):
        return "must not start with '-', '.' or '/'"
    if name.endswith(("/", ".", ".lock")):
        return "must not end with '/', '.' or '.lock'"
    if ".." in name or "//" in name:
        return "must not contain '..' or '//'"
    if any(part.startswith(".") for part in name.split("/")):
        return "path components must not start with '.'"
    if name.startswith(PR_BRANCH_NAMESPACE):
        return "'pr/' is reserved for pull request worktrees"
    return None


def parse_branch_identifier(text: str, prefix: str = "") -> WorktreeIdentifier:
    """Validate a branch name and strip a leading ``<prefix>/``.

    ``darren/feature-x`` and ``feature-x`` name the same worktree when the
    prefix is ``darren``.
    """
    name = text.strip()
    if prefix and name.startswith(f"{prefix}/"):
        name = name[len(prefix) + 1:]
    problem = _branch_name_problem(name)
    if problem:
        raise InvalidIdentifier(f"Invalid branch name '{text}': {problem}")
    return WorktreeIdentifier(BRANCH, name)


def parse_any_identifier(text: str, prefix: str = "") -> WorktreeIdentifier:
    """Parse ``pr-<n>``, a PR number or URL, or else a branch name."""
    stripped = text.strip()
    if stripped.startswith("pr-") and is_pr_number(stripped[3:]):
        return parse_pr_identifier(stripped[3:])
    if is_pr_number(stripped) or _PR_URL_PATTERN.search(stripped):
        return parse_pr_identifier(stripped)
    return parse_branch_identifier(stripped, prefix)
