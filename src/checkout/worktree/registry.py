"""Worktree registry: deterministic path, branch and color for an identifier.

Everything here is a pure function of its inputs. ``status`` and ``clean``
rely on ``identifier_from_dirname`` to recognize worktrees created by an
earlier run.
"""

import hashlib
import os
from dataclasses import dataclass
from typing import Optional

from checkout.errors import InvalidIdentifier
from checkout.worktree.identifier import (
    PR_BRANCH_NAMESPACE,
    WorktreeIdentifier,
    is_pr_number,
    parse_branch_identifier,
    parse_pr_identifier,
)

PR_DIR_PREFIX = "pr-"
BRANCH_DIR_PREFIX = "branch-"
PR_BRANCH_PREFIX = PR_BRANCH_NAMESPACE


@dataclass(frozen=True)
class PaletteColor:
    name: str
    hex: str


PALETTE = (
    PaletteColor("soft navy", "1e2233"),
    PaletteColor("soft sage", "1e2828"),
    PaletteColor("dusty plum", "2d1f2d"),
    PaletteColor("seafoam", "1f2d2d"),
    PaletteColor("lavender", "2b2433"),
    PaletteColor("warm taupe", "33261f"),
    PaletteColor("powder blue", "1f2b33"),
    PaletteColor("dusty rose", "2d2626"),
    PaletteColor("soft mint", "262d26"),
    PaletteColor("soft peach", "332b1f"),
    PaletteColor("soft violet", "261f2d"),
    PaletteColor("soft teal", "1f332b"),
)


@dataclass(frozen=True)
class WorktreeRecord:
    """Where a worktree lives, what it has checked out, and its color."""

    identifier: WorktreeIdentifier
    path: str
    branch_name: str
    color: PaletteColor

    @property
    def dirname(self) -> str:
        return os.path.basename(self.path)


def color_index(identifier: WorktreeIdentifier) -> int:
    digest = hashlib.sha1(identifier.key.encode("utf-8")).hexdigest()
    return int(digest, 16) % len(PALETTE)


def color_for(identifier: WorktreeIdentifier) -> PaletteColor:
    return PALETTE[color_index(identifier)]


def dirname_for(identifier: WorktreeIdentifier) -> str:
    if identifier.is_pr:
        return f"{PR_DIR_PREFIX}{identifier.value}"
    # '+' is not a legal identifier character, so this encoding is injective
    return BRANCH_DIR_PREFIX + identifier.value.replace("/", "+")


def branch_name_for(identifier: WorktreeIdentifier, prefix: str) -> str:
    if identifier.is_pr:
        return f"{PR_BRANCH_PREFIX}{identifier.value}"
    if prefix:
        return f"{prefix}/{identifier.value}"
    return identifier.value


def derive(identifier: WorktreeIdentifier, root: str, prefix: str = "") -> WorktreeRecord:
    """Compute the record for ``identifier`` under ``root``.

    Args:
        identifier: A parsed WorktreeIdentifier.
        root: The worktree root directory.
        prefix: Namespace prepended to personal branch names.

    Returns:
        The WorktreeRecord; no filesystem or git access is performed.
    """
    root = os.path.abspath(os.path.expanduser(root))
    return WorktreeRecord(
        identifier=identifier,
        path=os.path.join(root, dirname_for(identifier)),
        branch_name=branch_name_for(identifier, prefix),
        color=color_for(identifier),
    )


def identifier_from_dirname(dirname: str) -> Optional[WorktreeIdentifier]:
    """Reverse ``dirname_for``. Returns None for directories this tool did not create."""
    try:
        if dirname.startswith(PR_DIR_PREFIX):
            number = dirname[len(PR_DIR_PREFIX):]
            if not is_pr_number(number) or number != str(int(number)):
                return None
            return parse_pr_identifier(number)
        if dirname.startswith(BRANCH_DIR_PREFIX):
            name = dirname[len(BRANCH_DIR_PREFIX):].replace("+", "/")
            identifier = parse_branch_identifier(name)
            if dirname_for(identifier) != dirname:
                return None
            return identifier
    except InvalidIdentifier:
        return None
    return None
