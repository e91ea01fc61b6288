"""WorktreeManager: create, list, remove and clean worktrees under the worktree root.

A worktree exists for this tool only when its directory is on disk and it is
registered in ``git worktree list`` of the main repository. Nothing else is
persisted.
"""

import filecmp
import os
import shutil
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

import click

from checkout.errors import AlreadyExists, CollaboratorFailure, DirtyWorktree, NotFound
from checkout.github_client import CLOSED, MERGED, OPEN, PullRequest
from checkout.worktree.identifier import WorktreeIdentifier
from checkout.worktree.registry import WorktreeRecord, derive, identifier_from_dirname
from checkout.worktree.worktree_setup import setup_worktree

UNTRACKED = "??"


class WorktreeState:
    ACTIVE = "active"
    STALE = "stale"
    UNKNOWN = "unknown"


@dataclass
class WorktreeEntry:
    """A live worktree with its on-demand state."""

    record: WorktreeRecord
    dirty: bool
    state: str = WorktreeState.UNKNOWN
    head: Optional[str] = None


@dataclass
class CreateResult:
    record: WorktreeRecord
    created: bool
    warnings: List[str] = field(default_factory=list)
    pull_request: Optional[PullRequest] = None


@dataclass
class CleanReport:
    removed: List[WorktreeRecord] = field(default_factory=list)
    skipped_dirty: List[WorktreeRecord] = field(default_factory=list)
    vanished: List[WorktreeRecord] = field(default_factory=list)
    failed: List[Tuple[WorktreeRecord, str]] = field(default_factory=list)
    aborted: bool = False
    interrupted: bool = False


class WorktreeManager:
    """Lifecycle of the worktrees derived from identifiers.

    Args:
        config: The resolved CheckoutConfig.
        git_repo: GitRepository for the main repository.
        gh_client: GitHubClient used for PR metadata and stale checks.
    """

    def __init__(self, config, git_repo, gh_client):
        self._config = config
        self._git = git_repo
        self._gh = gh_client

    def derive(self, identifier: WorktreeIdentifier) -> WorktreeRecord:
        return derive(identifier, self._config.worktree_root, self._config.branch_prefix)

    # Inspection

    def _is_live(self, path: str) -> bool:
        return os.path.isdir(path) and self._git.find_worktree(path) is not None

    def changed_paths(self, record: WorktreeRecord) -> List[str]:
        """Uncommitted changes in the worktree, excluding files setup created."""
        changes = []
        for code, path in self._git.status_entries(record.path):
            if code == UNTRACKED and self._is_setup_artifact(record, path):
                continue
            changes.append(path)
        return changes

    def _is_setup_artifact(self, record: WorktreeRecord, path: str) -> bool:
        """True while ``path`` is still exactly what setup put there.

        A shared directory counts only while it is a symlink, a copied file
        only while its content matches the main repository's copy.
        """
        path = path.rstrip("/")
        worktree_path = os.path.join(record.path, path)
        if any(path == name.rstrip("/") for name in self._config.shared_dirs):
            return os.path.islink(worktree_path)
        if path in self._config.copy_files:
            source = os.path.join(self._config.repo, path)
            return (
                os.path.isfile(worktree_path)
                and os.path.isfile(source)
                and filecmp.cmp(source, worktree_path, shallow=False)
            )
        return False

    def is_dirty(self, record: WorktreeRecord) -> bool:
        return bool(self.changed_paths(record))

    def state_of(self, record: WorktreeRecord) -> str:
        """Best-effort stale check. Any gh failure yields UNKNOWN, never STALE."""
        identifier = record.identifier
        try:
            if identifier.is_pr:
                state = self._gh.get_pr_state(identifier.pr_number)
            else:
                state = self._gh.find_pr_state_for_branch(record.branch_name)
                if state == "":
                    return WorktreeState.ACTIVE
        except CollaboratorFailure:
            return WorktreeState.UNKNOWN
        if state in (MERGED, CLOSED):
            return WorktreeState.STALE
        if state == OPEN:
            return WorktreeState.ACTIVE
        return WorktreeState.UNKNOWN

    def list(self, check_stale: bool = True) -> Iterator[WorktreeEntry]:
        """Yield every live worktree under the worktree root.

        Recomputed from git on each call. Worktrees that vanish while being
        inspected are skipped.
        """
        root = os.path.realpath(self._config.worktree_root)
        for info in self._git.list_worktrees():
            if info.bare or os.path.dirname(os.path.realpath(info.path)) != root:
                continue
            identifier = identifier_from_dirname(os.path.basename(info.path))
            if identifier is None:
                continue
            record = self.derive(identifier)
            if not os.path.isdir(record.path):
                continue
            try:
                dirty = self.is_dirty(record)
            except NotFound:
                continue
            state = self.state_of(record) if check_stale else WorktreeState.UNKNOWN
            head = info.head[:8] if info.head else None
            yield WorktreeEntry(record=record, dirty=dirty, state=state, head=head)

    def get(self, identifier: WorktreeIdentifier, check_stale: bool = False) -> WorktreeEntry:
        """Return the live entry for ``identifier``.

        Raises:
            NotFound: If no live worktree exists for it.
        """
        for entry in self.list(check_stale=check_stale):
            if entry.record.identifier == identifier:
                return entry
        record = self.derive(identifier)
        raise NotFound(f"No worktree for {identifier} at {record.path}")

    # Creation

    def create(self, identifier: WorktreeIdentifier, update: bool = False) -> CreateResult:
        """Create the worktree for ``identifier``, or reuse the existing one.

        Re-running create for a live worktree is a no-op that returns
        ``created=False``; with ``update`` a clean PR worktree is reset to the
        PR's latest head.

        Raises:
            AlreadyExists: If the path exists but is not a worktree of this repo.
            CollaboratorFailure: If gh or git fails while creating.
        """
        record = self.derive(identifier)
        registered = self._git.find_worktree(record.path)

        if registered is not None and os.path.isdir(record.path):
            result = CreateResult(record=record, created=False)
            if update:
                self._update(result)
            return result

        if registered is not None:
            # registered but its directory is gone
            self._git.prune_worktrees()
        if os.path.lexists(record.path):
            raise AlreadyExists(record.path)

        os.makedirs(self._config.worktree_root, exist_ok=True)
        pull_request = None
        try:
            if identifier.is_pr:
                pull_request = self._add_pr_worktree(record)
            else:
                self._add_branch_worktree(record)
        except CollaboratorFailure:
            if self._is_live(record.path):
                # a concurrent invocation created it first
                return CreateResult(record=record, created=False, pull_request=pull_request)
            raise

        warnings = setup_worktree(record.path, self._config.repo, self._config)
        return CreateResult(record=record, created=True, warnings=warnings,
                            pull_request=pull_request)

    def _resolve_pr_head(self, pull_request: PullRequest) -> Tuple[str, bool]:
        """Fetch the PR head and return (ref, on_origin).

        Cross-repository PRs, and heads that are not branches of origin, are
        fetched via ``pull/<n>/head`` and returned as a commit SHA. A fork's
        head branch name says nothing about origin's branch of the same name.
        """
        head = pull_request.head_ref_name
        if pull_request.is_cross_repository:
            click.echo(f"→ Fetching pull/{pull_request.number}/head from fork branch {head}...")
            return self._fetch_pull_ref(pull_request)
        click.echo(f"→ Fetching branch {head}...")
        try:
            self._git.fetch("origin", head)
        except CollaboratorFailure:
            # not a branch of origin; fall back to pull/<n>/head below
            click.echo(f"  {head} is not on origin, fetching pull/{pull_request.number}/head")
        if self._git.remote_branch_exists(head):
            return f"origin/{head}", True
        return self._fetch_pull_ref(pull_request)

    def _fetch_pull_ref(self, pull_request: PullRequest) -> Tuple[str, bool]:
        self._git.fetch("origin", f"pull/{pull_request.number}/head")
        return self._git.rev_parse("FETCH_HEAD"), False

    def _add_pr_worktree(self, record: WorktreeRecord) -> PullRequest:
        pull_request = self._gh.get_pr(record.identifier.pr_number)
        ref, on_origin = self._resolve_pr_head(pull_request)
        click.echo(f"→ Creating worktree at {record.path}...")
        self._git.add_worktree(
            record.path, ref,
            new_branch=record.branch_name, reset_branch=True,
            track=True if on_origin else None,
        )
        return pull_request

    def _add_branch_worktree(self, record: WorktreeRecord) -> None:
        branch = record.branch_name
        if self._git.has_remote("origin"):
            try:
                self._git.fetch("origin")
            except CollaboratorFailure as e:
                click.echo(f"Warning: could not fetch origin: {e.message}", err=True)

        click.echo(f"→ Creating worktree at {record.path}...")
        if self._git.local_branch_exists(branch):
            self._git.add_worktree(record.path, branch)
        elif self._git.remote_branch_exists(branch):
            self._git.add_worktree(record.path, f"origin/{branch}", new_branch=branch, track=True)
        else:
            base = self._git.default_branch() or "HEAD"
            self._git.add_worktree(record.path, base, new_branch=branch, track=False)

    def _update(self, result: CreateResult) -> None:
        record = result.record
        if not record.identifier.is_pr:
            result.warnings.append("--update only applies to pull request worktrees")
            return
        changes = self.changed_paths(record)
        if changes:
            result.warnings.append(
                f"{record.path} has uncommitted changes; not updating to the latest PR head"
            )
            return
        pull_request = self._gh.get_pr(record.identifier.pr_number)
        ref, _ = self._resolve_pr_head(pull_request)
        click.echo("→ Updating to latest...")
        self._git.reset_hard(record.path, ref)
        result.pull_request = pull_request

    # Removal

    def remove(self, identifier: WorktreeIdentifier, force: bool = False,
               delete_branch: bool = False) -> WorktreeRecord:
        """Remove one worktree.

        Raises:
            NotFound: If there is no live worktree for ``identifier``.
            DirtyWorktree: If it has uncommitted changes and ``force`` is not set.
        """
        record = self.derive(identifier)
        if not self._is_live(record.path):
            raise NotFound(f"No worktree for {identifier} at {record.path}")
        changes = self.changed_paths(record)
        if changes and not force:
            raise DirtyWorktree(record.path, changes)
        self._remove(record, force=bool(changes), delete_branch=delete_branch)
        self._git.prune_worktrees()
        return record

    def _remove_auxiliary_files(self, record: WorktreeRecord) -> None:
        for code, path in self._git.status_entries(record.path):
            if code == UNTRACKED and self._is_setup_artifact(record, path):
                os.remove(os.path.join(record.path, path.rstrip("/")))

    def _remove(self, record: WorktreeRecord, force: bool, delete_branch: bool) -> None:
        if not os.path.isdir(record.path):
            raise NotFound(f"{record.path} vanished")
        if not force:
            self._remove_auxiliary_files(record)
        try:
            self._git.remove_worktree(record.path, force=force)
        except CollaboratorFailure:
            if not os.path.isdir(record.path):
                raise NotFound(f"{record.path} vanished")
            raise
        if os.path.isdir(record.path):
            shutil.rmtree(record.path)
        if record.identifier.is_pr or delete_branch:
            self._git.delete_branch(record.branch_name)

    def clean(
        self,
        force: bool = False,
        stale_only: bool = False,
        identifiers: Optional[Iterable[WorktreeIdentifier]] = None,
        confirm: Optional[Callable[[List[WorktreeEntry]], bool]] = None,
        delete_branches: bool = False,
    ) -> CleanReport:
        """Remove every worktree without uncommitted changes.

        Dirty worktrees are skipped and reported unless ``force`` is set.
        ``confirm`` receives the planned removals; returning False aborts
        before anything is removed. An interrupt between removals stops the
        batch with ``interrupted`` set, leaving each worktree either present
        or fully removed.

        Raises:
            NotFound: If one of ``identifiers`` has no live worktree.
        """
        report = CleanReport()
        if identifiers is not None:
            entries = [self.get(identifier, check_stale=stale_only) for identifier in identifiers]
        else:
            entries = list(self.list(check_stale=stale_only))
        if stale_only:
            entries = [entry for entry in entries if entry.state == WorktreeState.STALE]

        removable = []
        for entry in entries:
            if entry.dirty and not force:
                report.skipped_dirty.append(entry.record)
            else:
                removable.append(entry)

        if removable and confirm is not None and not confirm(removable):
            report.aborted = True
            return report

        try:
            for entry in removable:
                try:
                    self._remove(entry.record, force=entry.dirty,
                                 delete_branch=delete_branches)
                except NotFound:
                    report.vanished.append(entry.record)
                except (CollaboratorFailure, OSError) as e:
                    report.failed.append((entry.record, str(e)))
                else:
                    report.removed.append(entry.record)
        except KeyboardInterrupt:
            report.interrupted = True

        try:
            self._git.prune_worktrees()
        except CollaboratorFailure as e:
            click.echo(f"Warning: git worktree prune failed: {e.message}", err=True)
        return report
