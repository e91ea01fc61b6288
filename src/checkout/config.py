"""CheckoutConfig: repository, worktree root and setup settings.

Values come from CLI flags, then CHECKOUT_* environment variables, then
defaults derived from the current git repository.
"""

import getpass
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from git import Repo
from git.exc import InvalidGitRepositoryError, NoSuchPathError

from checkout.errors import NotFound

DEFAULT_SHARED_DIRS = ["node_modules"]
DEFAULT_COPY_FILES = [".claude/settings.local.json", ".env", ".envrc"]
DEFAULT_TRUST_COMMAND = "mise trust"
DEFAULT_ASSISTANT_COMMAND = "claude"


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _default_user(environ: Mapping[str, str]) -> str:
    user = environ.get("USER") or environ.get("USERNAME")
    if user:
        return user
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return ""


def find_repo_root(start: str) -> str:
    """Return the top-level working tree of the main repository containing ``start``.

    When ``start`` is inside a linked worktree, the main repository is
    returned so that worktrees are always managed from one place.
    """
    try:
        repo = Repo(start, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        raise NotFound(f"Repo not found at {start}")
    if repo.working_tree_dir is None:
        raise NotFound(f"{start} is a bare repository")
    common_dir = os.path.abspath(repo.common_dir)
    if os.path.basename(common_dir) == ".git":
        return os.path.dirname(common_dir)
    return repo.working_tree_dir


@dataclass
class CheckoutConfig:
    """Resolved settings for one invocation."""

    repo: str
    worktree_root: str
    branch_prefix: str = ""
    skill_namespace: str = ""
    shared_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_SHARED_DIRS))
    copy_files: List[str] = field(default_factory=lambda: list(DEFAULT_COPY_FILES))
    trust_command: List[str] = field(default_factory=lambda: DEFAULT_TRUST_COMMAND.split())
    assistant_command: str = DEFAULT_ASSISTANT_COMMAND
    tint: bool = True

    @classmethod
    def resolve(
        cls,
        repo: Optional[str] = None,
        worktree_root: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> "CheckoutConfig":
        """Build a config, giving explicit arguments precedence over the environment.

        Raises:
            NotFound: If the repository path does not exist or is not a git repo.
        """
        env = os.environ if environ is None else environ

        repo_path = repo or env.get("CHECKOUT_REPO")
        if repo_path:
            repo_path = os.path.abspath(os.path.expanduser(repo_path))
            if not os.path.isdir(repo_path):
                raise NotFound(f"Repo not found at {repo_path}")
        repo_root = find_repo_root(repo_path or cwd or os.getcwd())

        root = worktree_root or env.get("CHECKOUT_WORKTREE_ROOT")
        if not root:
            root = os.path.join("~", f"{os.path.basename(repo_root)}-worktrees")
        root = os.path.abspath(os.path.expanduser(root))

        prefix = cls.default_branch_prefix(env)
        config = cls(
            repo=repo_root,
            worktree_root=root,
            branch_prefix=prefix,
            skill_namespace=cls.default_namespace(env),
        )
        if "CHECKOUT_SHARED_DIRS" in env:
            config.shared_dirs = _split_list(env["CHECKOUT_SHARED_DIRS"])
        if "CHECKOUT_COPY_FILES" in env:
            config.copy_files = _split_list(env["CHECKOUT_COPY_FILES"])
        if "CHECKOUT_TRUST_COMMAND" in env:
            config.trust_command = env["CHECKOUT_TRUST_COMMAND"].split()
        if env.get("CHECKOUT_CLAUDE"):
            config.assistant_command = env["CHECKOUT_CLAUDE"]
        if env.get("CHECKOUT_TINT", "1").strip().lower() in ("0", "false", "no", "off"):
            config.tint = False
        return config

    @staticmethod
    def default_branch_prefix(environ: Optional[Mapping[str, str]] = None) -> str:
        env = os.environ if environ is None else environ
        prefix = env.get("CHECKOUT_BRANCH_PREFIX")
        if prefix is None:
            prefix = _default_user(env)
        return prefix.strip("/")

    @classmethod
    def default_namespace(cls, environ: Optional[Mapping[str, str]] = None) -> str:
        env = os.environ if environ is None else environ
        return env.get("CHECKOUT_SKILL_NAMESPACE") or cls.default_branch_prefix(env)

    def to_dict(self):
        return {
            "repo": self.repo,
            "worktree_root": self.worktree_root,
            "branch_prefix": self.branch_prefix,
            "skill_namespace": self.skill_namespace,
            "shared_dirs": self.shared_dirs,
            "copy_files": self.copy_files,
            "trust_command": " ".join(self.trust_command),
            "assistant_command": self.assistant_command,
            "tint": self.tint,
        }
