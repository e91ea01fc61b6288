"""Shell completion scripts for the checkout CLI."""

import os

import click
from click.shell_completion import get_completion_class

SHELLS = ["bash", "zsh", "fish"]


def _login_shell():
    name = os.path.basename(os.environ.get("SHELL", ""))
    return name if name in SHELLS else None


@click.command("completion")
@click.argument("shell", type=click.Choice(SHELLS), required=False)
@click.pass_context
def completion(ctx, shell):
    """Print the completion script for SHELL (default: your login shell)."""
    shell = shell or _login_shell()
    if shell is None:
        click.echo(f"Supported shells: {', '.join(SHELLS)}")
        click.echo("Add one of these to your shell config:")
        click.echo('  eval "$(checkout completion zsh)"')
        click.echo('  eval "$(checkout completion bash)"')
        click.echo("  checkout completion fish | source")
        return
    root = ctx.find_root()
    prog_name = root.info_name or "checkout"
    comp_cls = get_completion_class(shell)
    if comp_cls is None:
        raise click.UsageError(f"Unsupported shell: {shell}")
    complete_var = "_{}_COMPLETE".format(prog_name.replace("-", "_").upper())
    comp = comp_cls(cli=root.command, ctx_args={}, prog_name=prog_name, complete_var=complete_var)
    click.echo(comp.source())
