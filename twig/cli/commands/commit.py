"""Commit command - create a commit from staged changes."""

import click
from twig.core.errors import TwigError
from twig.core.repository import Repository
from twig.cli.output import success, error, info


@click.command('commit')
@click.option('-m', '--message', help='Commit message')
def commit_cmd(message):
    """
    Record changes to the repository.

    Creates a commit from the staged changes in the index. During a merge
    this completes the merge with a two-parent commit; the message then
    defaults to the prepared merge message.

    Examples:
        twig commit -m "Initial commit"
        twig commit
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a twig repository"))
        raise click.Abort()

    if not message and not repo.merge.in_progress():
        click.echo(error("Commit message required. Use -m \"message\""))
        raise click.Abort()

    try:
        result = repo.commits.commit(message)
    except TwigError as e:
        click.echo(error(str(e)))
        raise click.Abort()

    click.echo(success(result.summary()))
    if result.is_merge:
        click.echo(info(f"Parents: {', '.join(p[:7] for p in result.parents)}"))
    elif not result.parents:
        click.echo(info("(root commit)"))
