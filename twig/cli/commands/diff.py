"""Diff command - show changes between commits and the working copy."""

import click
from twig.core.errors import TwigError
from twig.core.repository import Repository
from twig.cli.output import error


@click.command('diff')
@click.argument('ref1', required=False)
@click.argument('ref2', required=False)
@click.option('--patch', '-p', is_flag=True, help='Show line changes instead of names')
def diff_cmd(ref1, ref2, patch):
    """
    Show changed paths between two revisions or the working copy.

    Output is one line per path: its status (A, M, D) and its name.

    Examples:
        twig diff                  # HEAD vs working copy
        twig diff main             # main vs working copy
        twig diff main feature     # main vs feature
        twig diff --patch          # Unified line diffs
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a twig repository"))
        raise click.Abort()

    try:
        changes = repo.diff.changes(ref1, ref2)
    except TwigError as e:
        click.echo(error(str(e)))
        raise click.Abort()

    if not patch:
        for path, label in repo.diff.status_labels(changes).items():
            click.echo(f"{label} {path}")
        return

    for change in changes.values():
        click.echo(f"diff --twig a/{change.path} b/{change.path}")
        for line in repo.diff.patch(change):
            click.echo(line)
