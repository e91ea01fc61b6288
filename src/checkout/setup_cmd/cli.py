"""Click commands for installing assistant skills."""

import click

from checkout.config import CheckoutConfig
from checkout.setup_cmd.skills import link_skills, unlink_skills


@click.group("setup")
def setup_group():
    """Install assistant configuration."""


@setup_group.command("skills")
@click.argument("source_dir", type=click.Path(file_okay=False))
@click.option("--target", metavar="DIR",
              help="Commands directory of the assistant (default: ~/.claude/commands).")
@click.option("--namespace", metavar="NAME", envvar="CHECKOUT_SKILL_NAMESPACE",
              help="Subdirectory the skills are linked into (default: $USER).")
@click.option("--remove", is_flag=True,
              help="Remove the links that point into SOURCE_DIR instead of creating them.")
def skills_cmd(source_dir, target, namespace, remove):
    """Symlink the *.md skill files in SOURCE_DIR for the assistant."""
    if namespace is None:
        namespace = CheckoutConfig.default_namespace()
    if remove:
        result = unlink_skills(source_dir, target, namespace)
        for name in result.removed:
            click.echo(f"Removed {name}")
        if not result.removed:
            click.echo("No skill links to remove.")
        return

    result = link_skills(source_dir, target, namespace)
    for name in result.linked:
        click.echo(f"Linked {name}")
    for name in result.unchanged:
        click.echo(f"Unchanged {name}")
    for name in result.skipped:
        click.echo(f"Warning: {name} exists and is not a symlink; skipped", err=True)
