"""Rm command - remove tracked files from the working copy and index."""

import click
from pathlib import Path
from twig.core.errors import TwigError
from twig.core.repository import Repository
from twig.cli.output import success, error, info


@click.command('rm')
@click.argument('paths', nargs=-1, required=True)
@click.option('-r', 'recursive', is_flag=True, help='Allow recursive removal of directories')
def rm_cmd(paths, recursive):
    """
    Remove files from the working tree and the staging area.

    Refuses to remove a file whose content differs from the last commit.

    Examples:
        twig rm old.txt
        twig rm -r build
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a twig repository"))
        raise click.Abort()

    removed = []
    try:
        for path in paths:
            removed.extend(repo.staging.rm(Path.cwd() / path, recursive=recursive))
    except TwigError as e:
        click.echo(error(str(e)))
        raise click.Abort()

    click.echo(success(f"Removed {len(removed)} file(s)"))
    for file in removed:
        click.echo(info(f"  rm '{file}'"))
