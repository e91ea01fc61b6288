"""GitRepository: wraps a GitPython Repo for worktree, branch and status operations.

Provides an injectable interface for git, and converts GitCommandError
into CollaboratorFailure at this boundary.
"""

import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from checkout.errors import CollaboratorFailure, NotFound


@dataclass
class WorktreeInfo:
    """One entry of ``git worktree list --porcelain``."""

    path: str
    head: Optional[str] = None
    branch: Optional[str] = None
    detached: bool = False
    bare: bool = False
    locked: bool = False
    prunable: bool = False


def parse_worktree_porcelain(output: str) -> List[WorktreeInfo]:
    """Parse ``git worktree list --porcelain`` output into WorktreeInfo entries."""
    worktrees = []
    current = None
    for line in output.splitlines():
        if not line.strip():
            current = None
            continue
        label, _, value = line.partition(" ")
        if label == "worktree":
            current = WorktreeInfo(path=value)
            worktrees.append(current)
        elif current is None:
            continue
        elif label == "HEAD":
            current.head = value
        elif label == "branch":
            current.branch = value[len("refs/heads/"):] if value.startswith("refs/heads/") else value
        elif label == "detached":
            current.detached = True
        elif label == "bare":
            current.bare = True
        elif label == "locked":
            current.locked = True
        elif label == "prunable":
            current.prunable = True
    return worktrees


def _same_path(a: str, b: str) -> bool:
    return os.path.realpath(a) == os.path.realpath(b)


def _failure(error: GitCommandError) -> CollaboratorFailure:
    stderr = error.stderr or ""
    # GitPython wraps stderr as "\n  stderr: '...'"
    stderr = stderr.strip()
    if stderr.startswith("stderr:"):
        stderr = stderr[len("stderr:"):].strip().strip("'")
    return CollaboratorFailure(error.command, f"exit status {error.status}", stderr)


class GitRepository:
    """High-level git operations on the main repository and its worktrees.

    Args:
        repo: A GitPython Repo for the main working tree.
    """

    def __init__(self, repo):
        self._repo = repo

    @classmethod
    def open(cls, path: str) -> "GitRepository":
        try:
            return cls(Repo(path))
        except (InvalidGitRepositoryError, NoSuchPathError):
            raise NotFound(f"Repo not found at {path}")

    @property
    def working_tree_dir(self) -> str:
        return self._repo.working_tree_dir

    def _git(self, command, *args, repo=None):
        target = repo or self._repo
        try:
            return getattr(target.git, command)(*args)
        except GitCommandError as e:
            raise _failure(e)

    def list_worktrees(self) -> List[WorktreeInfo]:
        return parse_worktree_porcelain(self._git("worktree", "list", "--porcelain"))

    def find_worktree(self, path: str) -> Optional[WorktreeInfo]:
        for info in self.list_worktrees():
            if _same_path(info.path, path):
                return info
        return None

    def has_remote(self, name: str = "origin") -> bool:
        return name in [remote.name for remote in self._repo.remotes]

    def fetch(self, remote: str, *refspecs: str) -> None:
        self._git("fetch", remote, *refspecs)

    def local_branch_exists(self, branch: str) -> bool:
        return branch in [head.name for head in self._repo.heads]

    def remote_branch_exists(self, branch: str, remote: str = "origin") -> bool:
        try:
            self._repo.git.rev_parse("--verify", "--quiet", f"refs/remotes/{remote}/{branch}")
        except GitCommandError:
            return False
        return True

    def default_branch(self, remote: str = "origin") -> Optional[str]:
        """Return ``origin/<default>`` from the remote HEAD, or None when unknown."""
        try:
            ref = self._repo.git.symbolic_ref("--short", f"refs/remotes/{remote}/HEAD")
        except GitCommandError:
            return None
        return ref.strip() or None

    def add_worktree(self, path: str, ref: str, new_branch: Optional[str] = None,
                     reset_branch: bool = False, track: Optional[bool] = None) -> None:
        """Add a worktree at ``path`` checking out ``ref``.

        Args:
            path: Directory for the new worktree.
            ref: Branch or commit-ish to check out.
            new_branch: Create this branch at ``ref`` (``-b``).
            reset_branch: Use ``-B`` so an existing ``new_branch`` is reset to ``ref``.
            track: True for ``--track``, False for ``--no-track``, None for git's default.
        """
        args = ["add"]
        if track is True:
            args.append("--track")
        elif track is False:
            args.append("--no-track")
        if new_branch:
            args.extend(["-B" if reset_branch else "-b", new_branch])
        args.extend([path, ref])
        self._git("worktree", *args)

    def rev_parse(self, ref: str) -> str:
        return self._git("rev_parse", ref).strip()

    def remove_worktree(self, path: str, force: bool = False) -> None:
        args = ["remove"]
        if force:
            args.append("--force")
        args.append(path)
        self._git("worktree", *args)

    def prune_worktrees(self) -> None:
        self._git("worktree", "prune")

    def delete_branch(self, branch: str) -> bool:
        """Delete a local branch. Returns False if git refused."""
        try:
            self._repo.git.branch("-D", branch)
        except GitCommandError:
            return False
        return True

    def _open_worktree(self, worktree_path: str):
        try:
            return Repo(worktree_path)
        except (InvalidGitRepositoryError, NoSuchPathError):
            raise NotFound(f"No worktree at {worktree_path}")

    def status_entries(self, worktree_path: str) -> List[Tuple[str, str]]:
        """(status code, path) pairs from ``git status --porcelain`` inside a worktree.

        Untracked files are listed individually rather than collapsed into
        their directory.

        Raises:
            NotFound: If the worktree directory is gone.
        """
        output = self._git("status", "--porcelain", "--untracked-files=all",
                           repo=self._open_worktree(worktree_path))
        entries = []
        for line in output.splitlines():
            parts = line.strip().split(None, 1)
            if len(parts) != 2:
                continue
            code, path = parts
            if " -> " in path:
                path = path.split(" -> ", 1)[1]
            entries.append((code, path.strip('"')))
        return entries

    def reset_hard(self, worktree_path: str, ref: str) -> None:
        self._git("reset", "--hard", ref, repo=self._open_worktree(worktree_path))
