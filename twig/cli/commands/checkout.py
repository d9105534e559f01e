"""Checkout command - switch branches or detach HEAD at a commit."""

import click
from twig.core.errors import TwigError
from twig.core.repository import Repository
from twig.cli.output import success, error, info, warning


@click.command('checkout')
@click.argument('ref')
def checkout_cmd(ref):
    """
    Switch branches or check out a commit.

    Refuses when a local change would be overwritten; files untouched by
    the switch keep their local edits.

    Examples:
        twig checkout feature      # Switch to branch 'feature'
        twig checkout 3f2a...      # Detach HEAD at a commit
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a twig repository"))
        raise click.Abort()

    try:
        result = repo.working_copy.checkout(ref)
    except TwigError as e:
        click.echo(error(str(e)))
        raise click.Abort()

    if result.already:
        click.echo(info(result.message))
    elif result.detached:
        for line in result.message.splitlines():
            click.echo(warning(line))
    else:
        click.echo(success(result.message))
