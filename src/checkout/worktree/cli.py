"""Click commands for creating, listing and cleaning worktrees."""

import click

from checkout.config import CheckoutConfig
from checkout.errors import CheckoutError
from checkout.github_client import GitHubClient
from checkout.session.claude_runner import ClaudeRunner
from checkout.session.launcher import PLAIN, REVIEW, SessionLauncher
from checkout.worktree.git_repository import GitRepository
from checkout.worktree.identifier import (
    parse_any_identifier,
    parse_branch_identifier,
    parse_pr_identifier,
)
from checkout.worktree.lifecycle import WorktreeManager, WorktreeState

ARROW = click.style("→", fg="blue", bold=True)

repo_option = click.option(
    "--repo", type=click.Path(file_okay=False), envvar="CHECKOUT_REPO",
    help="Path to the main repository (default: $CHECKOUT_REPO or the current repo)",
)
no_claude_option = click.option(
    "--no-claude", is_flag=True,
    help="Skip spawning claude after creating the worktree",
)
update_option = click.option(
    "--update", is_flag=True,
    help="If the worktree exists and is clean, reset it to the latest PR head",
)


def open_manager(repo):
    """Resolve configuration and build the WorktreeManager for ``repo``."""
    config = CheckoutConfig.resolve(repo=repo)
    git_repo = GitRepository.open(config.repo)
    manager = WorktreeManager(config, git_repo, GitHubClient(cwd=config.repo))
    return config, manager


def _report_created(result):
    record = result.record
    pull_request = result.pull_request
    if pull_request is not None:
        click.echo(f"  {click.style('title:', dim=True)} {click.style(pull_request.title, bold=True)}")
        click.echo(f"  {click.style('branch:', dim=True)} {click.style(pull_request.head_ref_name, fg='yellow')}")
    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)
    if result.created:
        mark = click.style("✓", fg="green", bold=True)
        click.echo(f"{mark} Worktree ready at {click.style(record.path, fg='cyan', bold=True)}")
    else:
        mark = click.style("!", fg="yellow", bold=True)
        click.echo(f"{mark} Worktree already exists at {click.style(record.path, fg='cyan')}")
    click.echo(f"  {click.style('local branch:', dim=True)} {record.branch_name}")
    click.echo(f"  {click.style('color:', dim=True)} {record.color.name} (#{record.color.hex})")


def _checkout(identifier, repo, no_claude, mode=PLAIN, update=False, prompt_file=None):
    click.echo(f"{ARROW} {click.style(str(identifier), fg='cyan')}")
    config, manager = open_manager(repo)
    result = manager.create(identifier, update=update)
    _report_created(result)

    if no_claude:
        tip = click.style("tip:", fg="yellow", bold=True)
        click.echo(f"\n{tip} Run: cd {result.record.path} && {config.assistant_command}")
        return

    launcher = SessionLauncher.from_config(config, runner=ClaudeRunner())
    click.echo(f"{ARROW} Spawning {config.assistant_command} in {result.record.path}...")
    try:
        session = launcher.launch(result.record, mode, prompt_file)
    except CheckoutError:
        click.echo(f"The worktree is still available at {result.record.path}", err=True)
        raise
    if session.returncode != 0:
        click.echo(
            f"Warning: {config.assistant_command} exited with status {session.returncode}",
            err=True,
        )


@click.command("pr")
@click.argument("pr")
@no_claude_option
@repo_option
@update_option
def pr_cmd(pr, no_claude, repo, update):
    """Create a worktree for PR (a number or GitHub PR URL) and start claude in it."""
    identifier = parse_pr_identifier(pr)
    _checkout(identifier, repo, no_claude, mode=PLAIN, update=update)


@click.command("review")
@click.argument("pr")
@no_claude_option
@repo_option
@update_option
def review_cmd(pr, no_claude, repo, update):
    """Create a worktree for PR and start claude with the review-pr prompt."""
    identifier = parse_pr_identifier(pr)
    _checkout(identifier, repo, no_claude, mode=REVIEW, update=update)


@click.command("branch")
@click.argument("name")
@no_claude_option
@click.option("--claude-prompt", type=click.Path(exists=True, dir_okay=False),
              help="File whose contents are passed to claude as the initial prompt")
@repo_option
def branch_cmd(name, no_claude, claude_prompt, repo):
    """Create a worktree on the personal branch <prefix>/NAME and start claude in it."""
    identifier = parse_branch_identifier(name, CheckoutConfig.default_branch_prefix())
    _checkout(identifier, repo, no_claude, mode=PLAIN, prompt_file=claude_prompt)


def format_entry(entry):
    record = entry.record
    if entry.dirty:
        changes = click.style("dirty", fg="yellow")
    else:
        changes = click.style("clean", fg="green")
    state = f"{entry.state:<7}"
    if entry.state == WorktreeState.STALE:
        state = click.style(state, fg="red")
    elif entry.state == WorktreeState.UNKNOWN:
        state = click.style(state, dim=True)
    return (
        f"{record.dirname:<24} {record.branch_name:<32} {changes} {state} "
        f"{entry.head or '':<8} {record.color.name}"
    )


@click.command("status")
@repo_option
@click.option("--no-stale-check", is_flag=True,
              help="Skip asking gh whether each PR was merged or closed")
def status_cmd(repo, no_stale_check):
    """List the worktrees under the worktree root."""
    config, manager = open_manager(repo)
    count = 0
    for entry in manager.list(check_stale=not no_stale_check):
        click.echo(format_entry(entry))
        count += 1
    if count == 0:
        click.echo(f"No worktrees under {config.worktree_root}")


def _confirm_removals(entries):
    click.echo("Worktrees to remove:")
    for entry in entries:
        suffix = click.style(" (uncommitted changes will be lost!)", fg="yellow") if entry.dirty else ""
        click.echo(f"  {entry.record.path}{suffix}")
    return click.confirm(f"Remove {len(entries)} worktree(s)?", default=False)


def _print_report(report):
    for record in report.removed:
        click.echo(f"{click.style('✓', fg='green')} Removed {record.path}")
    for record in report.vanished:
        click.echo(f"- {record.path} was already gone")
    for record in report.skipped_dirty:
        click.echo(f"{click.style('!', fg='yellow')} Skipped {record.path}: uncommitted changes")
    for record, message in report.failed:
        click.echo(f"Error: could not remove {record.path}: {message}", err=True)
    if report.aborted:
        click.echo("Cancelled")
    elif report.interrupted:
        click.echo("Interrupted; remaining worktrees were left in place", err=True)
    elif not (report.removed or report.vanished or report.skipped_dirty or report.failed):
        click.echo("Nothing to clean")


@click.command("clean")
@click.argument("identifiers", nargs=-1)
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation")
@click.option("--force", is_flag=True, help="Also remove worktrees with uncommitted changes")
@click.option("--stale", "stale_only", is_flag=True,
              help="Only remove worktrees whose PR was merged or closed")
@click.option("--delete-branches", is_flag=True,
              help="Also delete personal branches (generated pr/<n> branches are always deleted)")
@repo_option
@click.pass_context
def clean_cmd(ctx, identifiers, yes, force, stale_only, delete_branches, repo):
    """Remove worktrees without uncommitted changes (all, or only IDENTIFIERS)."""
    prefix = CheckoutConfig.default_branch_prefix()
    parsed = [parse_any_identifier(text, prefix) for text in identifiers] or None
    _, manager = open_manager(repo)
    report = manager.clean(
        force=force,
        stale_only=stale_only,
        identifiers=parsed,
        confirm=None if yes else _confirm_removals,
        delete_branches=delete_branches,
    )
    _print_report(report)
    if report.interrupted:
        ctx.exit(130)
    if report.failed:
        ctx.exit(1)
