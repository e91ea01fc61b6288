"""GitHubClient: wraps all `gh` CLI calls for pull request lookups."""

import json
import subprocess
from dataclasses import dataclass
from typing import Optional

from checkout.errors import CollaboratorFailure

MERGED = "MERGED"
CLOSED = "CLOSED"
OPEN = "OPEN"


@dataclass
class PullRequest:
    number: int
    title: str
    head_ref_name: str
    state: str = OPEN
    url: str = ""
    is_cross_repository: bool = False

    @classmethod
    def from_json(cls, data) -> "PullRequest":
        return cls(
            number=int(data["number"]),
            title=data.get("title", ""),
            head_ref_name=data["headRefName"],
            state=data.get("state", OPEN),
            url=data.get("url", ""),
            is_cross_repository=bool(data.get("isCrossRepository", False)),
        )


class GitHubClient:
    """Wraps GitHub CLI (gh) calls for PR operations.

    All subprocess calls go through _run_gh() for consistency. ``cwd`` is
    the repository gh resolves the GitHub remote from.
    """

    def __init__(self, cwd: Optional[str] = None):
        self._cwd = cwd

    def _run_gh(self, args, **kwargs):
        try:
            return subprocess.run(
                args,
                capture_output=True,
                text=True,
                cwd=self._cwd,
                **kwargs,
            )
        except OSError as e:
            raise CollaboratorFailure(args, f"could not run gh: {e}")

    def get_pr(self, pr_number: int) -> PullRequest:
        """Fetch number, title, head branch, state, URL and fork flag of a PR.

        Raises:
            CollaboratorFailure: If gh fails or returns unparseable output.
        """
        args = [
            "gh", "pr", "view", str(pr_number),
            "--json", "number,title,headRefName,state,url,isCrossRepository",
        ]
        result = self._run_gh(args)
        if result.returncode != 0:
            raise CollaboratorFailure(args, "gh pr view failed", result.stderr)
        try:
            return PullRequest.from_json(json.loads(result.stdout))
        except (ValueError, KeyError, TypeError) as e:
            raise CollaboratorFailure(args, f"Failed to parse PR details: {e}")

    def get_pr_state(self, pr_number: int) -> str:
        result = self._run_gh(
            ["gh", "pr", "view", str(pr_number), "--json", "state"]
        )
        if result.returncode != 0:
            return ""
        try:
            return json.loads(result.stdout).get("state", "")
        except ValueError:
            return ""

    def find_pr_state_for_branch(self, branch_name: str) -> Optional[str]:
        """State of the most recent PR whose head is ``branch_name``.

        Returns "" when the branch has no PR and None when gh fails.
        """
        result = self._run_gh(
            ["gh", "pr", "list", "--head", branch_name, "--state", "all",
             "--json", "number,state", "--limit", "1"]
        )
        if result.returncode != 0:
            return None
        try:
            prs = json.loads(result.stdout)
        except ValueError:
            return None
        if not prs:
            return ""
        return prs[0].get("state", "")
