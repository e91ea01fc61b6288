"""Top-level Click group for the checkout CLI."""

import click

from checkout import __version__
from checkout.completion import completion
from checkout.setup_cmd.cli import setup_group
from checkout.worktree.cli import branch_cmd, clean_cmd, pr_cmd, review_cmd, status_cmd


@click.group("checkout")
@click.version_option(__version__, prog_name="checkout")
def main():
    """checkout - one git worktree and one claude session per PR or branch."""


main.add_command(pr_cmd)
main.add_command(review_cmd)
main.add_command(branch_cmd)
main.add_command(status_cmd)
main.add_command(clean_cmd)
main.add_command(setup_group)
main.add_command(completion)
