"""Merge command for Twig."""

import click
from twig.core.errors import TwigError
from twig.core.repository import Repository
from twig.cli.output import success, error, warning, info


@click.command('merge')
@click.argument('ref', required=False)
@click.option('--abort', is_flag=True, help='Abort the current merge operation')
def merge_cmd(ref, abort):
    """
    Merge a branch or commit into the current branch.

    Fast-forwards when possible, otherwise performs a three-way merge and
    commits it when no path conflicts.

    Examples:
        twig merge feature         # Merge feature into the current branch
        twig merge --abort         # Abort a conflicted merge
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a twig repository"))
        raise click.Abort()

    if abort:
        try:
            aborted = repo.merge.abort_merge()
        except TwigError as e:
            click.echo(error(str(e)))
            raise click.Abort()
        if not aborted:
            click.echo(error("No merge in progress"))
            raise click.Abort()
        click.echo(success("Merge aborted"))
        return

    if not ref:
        click.echo(error("Missing branch name"))
        click.echo(info("Usage: twig merge <branch>"))
        click.echo(info("       twig merge --abort"))
        raise click.Abort()

    try:
        result = repo.merge.merge_ref(ref)
    except TwigError as e:
        click.echo(error(str(e)))
        raise click.Abort()

    if result.up_to_date:
        click.echo(info(result.message))
    elif result.is_fast_forward:
        click.echo(success(result.message))
    elif result.success:
        click.echo(success(result.message))
        click.echo(info(f"Created merge commit {result.commit_hash[:7]}"))
    else:
        for path in result.conflicted_paths:
            click.echo(error(f"CONFLICT (content): Merge conflict in {path}"))
        click.echo(warning(result.message))
        click.echo(info("Stage the resolved files with 'twig add', then run 'twig commit'"))
        click.echo(info("Or run 'twig merge --abort'"))
        click.get_current_context().exit(1)
