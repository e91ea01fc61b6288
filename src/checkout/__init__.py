"""Per-PR and per-branch git worktrees with an interactive claude session in each."""

__version__ = "0.1.0"
