"""Tests for WorktreeManager against real temporary git repositories."""

import os
import shutil

import pytest

from checkout.errors import AlreadyExists, CollaboratorFailure, DirtyWorktree, NotFound
from checkout.github_client import CLOSED, MERGED
from checkout.worktree.identifier import parse_branch_identifier, parse_pr_identifier
from checkout.worktree.lifecycle import WorktreeState

from git_fixtures import commit_file

PR_7 = parse_pr_identifier("7")
PR_9 = parse_pr_identifier("9")
SPIKE = parse_branch_identifier("spike")


def _write(path, content="x\n"):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as f:
        f.write(content)


def _branches(repo):
    return [head.name for head in repo.heads]


@pytest.mark.integration
class TestCreatePullRequestWorktree:

    def test_creates_worktree_on_pr_head(self, manager, git_setup):
        result = manager.create(PR_7)

        assert result.created
        assert result.record.path == os.path.join(git_setup.worktree_root, "pr-7")
        assert os.path.isfile(os.path.join(result.record.path, "login.py"))
        assert result.pull_request.title == "Add login"
        assert "pr/7" in _branches(git_setup.main)

    def test_pr_branch_tracks_pr_head(self, manager, git_setup):
        manager.create(PR_7)
        tracking = git_setup.main.heads["pr/7"].tracking_branch()
        assert tracking is not None
        assert tracking.name == "origin/feature/login"

    def test_fork_pr_uses_pull_ref(self, manager, git_setup):
        result = manager.create(PR_9)

        assert result.created
        assert git_setup.main.heads["pr/9"].commit.hexsha == git_setup.fork_sha
        assert os.path.isfile(os.path.join(result.record.path, "fix.py"))
        assert git_setup.main.heads["pr/9"].tracking_branch() is None

    def test_fork_pr_named_like_origin_branch_uses_pull_ref(self, manager, git_setup, fake_gh):
        git_setup.push("contrib-fix:refs/pull/11/head")
        fake_gh.add_pr(11, "main", title="Fork main", cross_repository=True)

        result = manager.create(parse_pr_identifier("11"))

        assert git_setup.main.heads["pr/11"].commit.hexsha == git_setup.fork_sha
        assert os.path.isfile(os.path.join(result.record.path, "fix.py"))

    def test_head_missing_from_origin_falls_back_to_pull_ref(self, manager, git_setup, fake_gh):
        git_setup.push("contrib-fix:refs/pull/12/head")
        fake_gh.add_pr(12, "deleted-branch", title="Head branch deleted")

        manager.create(parse_pr_identifier("12"))

        assert git_setup.main.heads["pr/12"].commit.hexsha == git_setup.fork_sha

    def test_second_create_is_a_noop(self, manager):
        first = manager.create(PR_7)
        second = manager.create(PR_7)

        assert not second.created
        assert second.record == first.record

    def test_update_resets_clean_worktree_to_latest_head(self, manager, git_setup):
        result = manager.create(PR_7)
        git_setup.seed.git.checkout("feature/login")
        new_sha = commit_file(git_setup.seed, "login.py", "def login():\n    return True\n")
        git_setup.seed.git.checkout("main")
        git_setup.push("feature/login")

        updated = manager.create(PR_7, update=True)

        assert not updated.created
        head = manager.get(PR_7).head
        assert new_sha.startswith(head)
        with open(os.path.join(result.record.path, "login.py")) as f:
            assert "return True" in f.read()

    def test_update_leaves_dirty_worktree_alone(self, manager, fake_gh):
        result = manager.create(PR_7)
        _write(os.path.join(result.record.path, "wip.txt"))

        updated = manager.create(PR_7, update=True)

        assert any("uncommitted changes" in w for w in updated.warnings)
        assert ("get_pr", 7) not in fake_gh.calls[1:]

    def test_gh_failure_aborts_without_creating(self, manager, fake_gh, git_setup):
        fake_gh.fail_all()

        with pytest.raises(CollaboratorFailure):
            manager.create(PR_7)

        assert not os.path.exists(os.path.join(git_setup.worktree_root, "pr-7"))

    def test_unknown_pr_aborts(self, manager):
        with pytest.raises(CollaboratorFailure):
            manager.create(parse_pr_identifier("404"))

    def test_foreign_directory_raises_already_exists(self, manager, git_setup):
        foreign = os.path.join(git_setup.worktree_root, "pr-7")
        _write(os.path.join(foreign, "notes.txt"))

        with pytest.raises(AlreadyExists):
            manager.create(PR_7)

        assert os.path.isfile(os.path.join(foreign, "notes.txt"))

    def test_recreates_after_directory_vanished(self, manager):
        first = manager.create(PR_7)
        shutil.rmtree(first.record.path)

        second = manager.create(PR_7)

        assert second.created
        assert os.path.isdir(second.record.path)

    def test_concurrent_create_is_reuse(self, manager, mocker):
        original = manager._add_pr_worktree

        def create_then_fail(record):
            original(record)
            raise CollaboratorFailure(["git", "worktree", "add"], "exit status 128",
                                      f"fatal: '{record.path}' already exists")

        mocker.patch.object(manager, "_add_pr_worktree", side_effect=create_then_fail)

        result = manager.create(PR_7)

        assert not result.created
        assert os.path.isdir(result.record.path)


@pytest.mark.integration
class TestCreateBranchWorktree:

    def test_new_branch_from_default_branch(self, manager, git_setup):
        result = manager.create(SPIKE)

        assert result.created
        assert result.record.branch_name == "alice/spike"
        assert result.record.dirname == "branch-spike"
        branch = git_setup.main.heads["alice/spike"]
        assert branch.commit == git_setup.main.remotes.origin.refs["main"].commit
        assert branch.tracking_branch() is None

    def test_prefixed_input_names_the_same_worktree(self, manager):
        manager.create(SPIKE)
        result = manager.create(parse_branch_identifier("alice/spike", "alice"))
        assert not result.created

    def test_existing_remote_branch_is_tracked(self, manager, git_setup):
        git_setup.seed.git.checkout("-b", "alice/remote-work", "main")
        commit_file(git_setup.seed, "remote.txt", "remote\n")
        git_setup.seed.git.checkout("main")
        git_setup.push("alice/remote-work")

        result = manager.create(parse_branch_identifier("remote-work"))

        assert os.path.isfile(os.path.join(result.record.path, "remote.txt"))
        tracking = git_setup.main.heads["alice/remote-work"].tracking_branch()
        assert tracking.name == "origin/alice/remote-work"

    def test_existing_local_branch_is_checked_out(self, manager, git_setup):
        git_setup.main.git.branch("alice/local-only")

        result = manager.create(parse_branch_identifier("local-only"))

        info = manager._git.find_worktree(result.record.path)
        assert info.branch == "alice/local-only"

    def test_nested_branch_name(self, manager, git_setup):
        result = manager.create(parse_branch_identifier("feature/x"))
        assert result.record.dirname == "branch-feature+x"
        assert "alice/feature/x" in _branches(git_setup.main)


@pytest.mark.integration
class TestAuxiliarySetup:

    def test_fresh_worktree_with_auxiliary_files_is_not_dirty(self, manager, git_setup):
        os.makedirs(os.path.join(git_setup.main_dir, "node_modules", "left-pad"))
        _write(os.path.join(git_setup.main_dir, ".env"), "TOKEN=1\n")
        _write(os.path.join(git_setup.main_dir, ".claude", "settings.local.json"), "{}")

        result = manager.create(SPIKE)

        path = result.record.path
        assert os.path.islink(os.path.join(path, "node_modules"))
        assert os.path.isfile(os.path.join(path, ".env"))
        assert os.path.isfile(os.path.join(path, ".claude", "settings.local.json"))
        assert not manager.is_dirty(result.record)

    def test_setup_failure_is_a_warning(self, manager, mocker):
        mocker.patch("checkout.worktree.lifecycle.setup_worktree",
                     return_value=["mise trust: not trusted"])

        result = manager.create(SPIKE)

        assert result.created
        assert result.warnings == ["mise trust: not trusted"]

    def test_removal_keeps_shared_source_directory(self, manager, git_setup):
        package = os.path.join(git_setup.main_dir, "node_modules", "left-pad")
        os.makedirs(package)
        _write(os.path.join(git_setup.main_dir, ".env"), "TOKEN=1\n")
        result = manager.create(SPIKE)

        manager.remove(SPIKE)

        assert not os.path.exists(result.record.path)
        assert os.path.isdir(package)
        assert os.path.isfile(os.path.join(git_setup.main_dir, ".env"))

    def test_edited_copied_file_makes_worktree_dirty(self, manager, git_setup):
        _write(os.path.join(git_setup.main_dir, ".env"), "TOKEN=1\n")
        result = manager.create(SPIKE)
        env_file = os.path.join(result.record.path, ".env")
        _write(env_file, "TOKEN=worktree-only\n")

        assert manager.changed_paths(result.record) == [".env"]
        with pytest.raises(DirtyWorktree):
            manager.remove(SPIKE)

    def test_clean_keeps_worktree_with_edited_copied_file(self, manager, git_setup):
        _write(os.path.join(git_setup.main_dir, ".env"), "TOKEN=1\n")
        result = manager.create(SPIKE)
        env_file = os.path.join(result.record.path, ".env")
        _write(env_file, "TOKEN=worktree-only\n")

        report = manager.clean()

        assert report.skipped_dirty == [result.record]
        assert report.removed == []
        with open(env_file) as f:
            assert f.read() == "TOKEN=worktree-only\n"

    def test_replaced_shared_directory_makes_worktree_dirty(self, manager, git_setup):
        os.makedirs(os.path.join(git_setup.main_dir, "node_modules", "left-pad"))
        result = manager.create(SPIKE)
        link = os.path.join(result.record.path, "node_modules")
        os.remove(link)
        _write(os.path.join(link, "local.js"))

        assert manager.is_dirty(result.record)


@pytest.mark.integration
class TestList:

    def test_empty(self, manager):
        assert list(manager.list()) == []

    def test_lists_created_worktrees(self, manager):
        manager.create(PR_7)
        manager.create(SPIKE)

        entries = {entry.record.identifier: entry for entry in manager.list(check_stale=False)}

        assert set(entries) == {PR_7, SPIKE}
        assert not entries[PR_7].dirty
        assert len(entries[PR_7].head) == 8
        assert entries[PR_7].state == WorktreeState.UNKNOWN

    def test_is_restartable(self, manager):
        manager.create(PR_7)
        assert list(manager.list()) == list(manager.list())

    def test_reports_dirty(self, manager):
        result = manager.create(PR_7)
        with open(os.path.join(result.record.path, "login.py"), "a") as f:
            f.write("# edit\n")

        [entry] = manager.list()

        assert entry.dirty

    def test_ignores_foreign_directories_and_worktrees(self, manager, git_setup, tmp_path):
        manager.create(PR_7)
        os.makedirs(os.path.join(git_setup.worktree_root, "scratch"))
        manager._git.add_worktree(str(tmp_path / "elsewhere"), "origin/main",
                                  new_branch="elsewhere", track=False)

        entries = list(manager.list())

        assert [entry.record.identifier for entry in entries] == [PR_7]

    def test_skips_vanished_worktree(self, manager):
        result = manager.create(PR_7)
        manager.create(SPIKE)
        shutil.rmtree(result.record.path)

        entries = list(manager.list())

        assert [entry.record.identifier for entry in entries] == [SPIKE]

    def test_stale_states(self, manager, fake_gh):
        manager.create(PR_7)
        manager.create(SPIKE)
        fake_gh.set_pr_state(7, MERGED)
        fake_gh.set_branch_pr_state("alice/spike", "OPEN")

        states = {entry.record.identifier: entry.state for entry in manager.list()}

        assert states == {PR_7: WorktreeState.STALE, SPIKE: WorktreeState.ACTIVE}

    def test_gh_failure_gives_unknown_state(self, manager, fake_gh):
        manager.create(PR_7)
        fake_gh.fail_all()

        [entry] = manager.list()

        assert entry.state == WorktreeState.UNKNOWN

    def test_get_missing_raises_not_found(self, manager):
        with pytest.raises(NotFound):
            manager.get(PR_7)


@pytest.mark.integration
class TestRemove:

    def test_removes_clean_worktree_and_pr_branch(self, manager, git_setup):
        result = manager.create(PR_7)

        manager.remove(PR_7)

        assert not os.path.exists(result.record.path)
        assert manager._git.find_worktree(result.record.path) is None
        assert "pr/7" not in _branches(git_setup.main)

    def test_personal_branch_is_kept_by_default(self, manager, git_setup):
        manager.create(SPIKE)
        manager.remove(SPIKE)
        assert "alice/spike" in _branches(git_setup.main)

    def test_personal_branch_deleted_on_request(self, manager, git_setup):
        manager.create(SPIKE)
        manager.remove(SPIKE, delete_branch=True)
        assert "alice/spike" not in _branches(git_setup.main)

    def test_dirty_worktree_is_refused(self, manager):
        result = manager.create(PR_7)
        _write(os.path.join(result.record.path, "wip.txt"))

        with pytest.raises(DirtyWorktree) as exc_info:
            manager.remove(PR_7)

        assert exc_info.value.changes == ["wip.txt"]
        assert os.path.isfile(os.path.join(result.record.path, "wip.txt"))

    def test_force_removes_dirty_worktree(self, manager):
        result = manager.create(PR_7)
        _write(os.path.join(result.record.path, "wip.txt"))

        manager.remove(PR_7, force=True)

        assert not os.path.exists(result.record.path)

    def test_missing_worktree_raises_not_found(self, manager):
        with pytest.raises(NotFound):
            manager.remove(PR_7)


@pytest.mark.integration
class TestClean:

    def test_removes_clean_and_skips_dirty(self, manager):
        clean = manager.create(PR_7)
        dirty = manager.create(SPIKE)
        _write(os.path.join(dirty.record.path, "wip.txt"))

        report = manager.clean()

        assert report.removed == [clean.record]
        assert report.skipped_dirty == [dirty.record]
        assert not os.path.exists(clean.record.path)
        assert os.path.isfile(os.path.join(dirty.record.path, "wip.txt"))

    def test_force_removes_dirty(self, manager):
        dirty = manager.create(SPIKE)
        _write(os.path.join(dirty.record.path, "wip.txt"))

        report = manager.clean(force=True)

        assert report.removed == [dirty.record]
        assert not os.path.exists(dirty.record.path)

    def test_stale_only(self, manager, fake_gh):
        merged = manager.create(PR_7)
        closed = manager.create(PR_9)
        branch = manager.create(SPIKE)
        fake_gh.set_pr_state(7, MERGED)
        fake_gh.set_pr_state(9, CLOSED)

        report = manager.clean(stale_only=True)

        assert sorted(r.path for r in report.removed) == sorted(
            [merged.record.path, closed.record.path])
        assert os.path.isdir(branch.record.path)

    def test_stale_only_with_gh_down_removes_nothing(self, manager, fake_gh):
        result = manager.create(PR_7)
        fake_gh.fail_all()

        report = manager.clean(stale_only=True)

        assert report.removed == []
        assert os.path.isdir(result.record.path)

    def test_selected_identifiers_only(self, manager):
        manager.create(PR_7)
        spike = manager.create(SPIKE)

        report = manager.clean(identifiers=[SPIKE])

        assert report.removed == [spike.record]
        assert [entry.record.identifier for entry in manager.list()] == [PR_7]

    def test_unknown_identifier_raises_not_found(self, manager):
        with pytest.raises(NotFound):
            manager.clean(identifiers=[PR_7])

    def test_declined_confirmation_removes_nothing(self, manager):
        result = manager.create(PR_7)
        seen = []

        def decline(entries):
            seen.extend(entry.record for entry in entries)
            return False

        report = manager.clean(confirm=decline)

        assert report.aborted
        assert seen == [result.record]
        assert os.path.isdir(result.record.path)

    def test_confirm_not_called_when_nothing_to_remove(self, manager, mocker):
        confirm = mocker.Mock(return_value=True)
        report = manager.clean(confirm=confirm)
        confirm.assert_not_called()
        assert report.removed == []

    def test_interrupt_stops_batch(self, manager, mocker):
        manager.create(PR_7)
        manager.create(SPIKE)
        mocker.patch.object(manager, "_remove", side_effect=[None, KeyboardInterrupt()])

        report = manager.clean()

        assert report.interrupted
        assert len(report.removed) == 1

    def test_vanished_during_clean(self, manager, mocker):
        result = manager.create(PR_7)
        original = manager._remove

        def vanish_then_remove(record, force, delete_branch):
            shutil.rmtree(record.path)
            return original(record, force=force, delete_branch=delete_branch)

        mocker.patch.object(manager, "_remove", side_effect=vanish_then_remove)

        report = manager.clean()

        assert report.vanished == [result.record]
        assert report.removed == []

    def test_personal_branches_deleted_on_request(self, manager, git_setup):
        manager.create(SPIKE)
        manager.clean(delete_branches=True)
        assert "alice/spike" not in _branches(git_setup.main)
