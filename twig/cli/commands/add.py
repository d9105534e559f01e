"""Add command - stage files for commit."""

import click
from pathlib import Path
from twig.core.errors import TwigError
from twig.core.repository import Repository
from twig.cli.output import success, error, info


@click.command('add')
@click.argument('paths', nargs=-1, required=True)
def add_cmd(paths):
    """
    Add file contents to the staging area.

    Directories are added recursively. During a merge, adding a
    conflicted file marks it as resolved.

    Examples:
        twig add file.txt
        twig add src
        twig add .
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a twig repository"))
        raise click.Abort()

    added = []
    try:
        for path in paths:
            added.extend(repo.staging.add(Path.cwd() / path))
    except TwigError as e:
        click.echo(error(str(e)))
        raise click.Abort()

    click.echo(success(f"Added {len(added)} file(s) to staging area"))
    for file in added:
        click.echo(info(f"  {file}"))

    if repo.merge.in_progress():
        remaining = repo.load_index().conflicted_paths()
        if remaining:
            click.echo(info(f"Merge in progress: {len(remaining)} file(s) still unmerged"))
        else:
            click.echo(info("All conflicts resolved; run 'twig commit' to complete the merge"))
