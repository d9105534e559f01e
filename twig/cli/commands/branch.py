"""Branch command - list, create or delete branches."""

import click
from colorama import Fore, Style
from twig.core.errors import TwigError
from twig.core.refs import HEAD
from twig.core.repository import Repository
from twig.cli.output import success, error, info


@click.command('branch')
@click.argument('name', required=False)
@click.option('-d', '--delete', is_flag=True, help='Delete the named branch')
def branch_cmd(name, delete):
    """
    List, create, or delete branches.

    Without NAME, lists branches with the current one marked by '*'.
    With NAME, creates a branch at the current commit.

    Examples:
        twig branch                # List branches
        twig branch feature        # Create branch 'feature'
        twig branch -d feature     # Delete branch 'feature'
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a twig repository"))
        raise click.Abort()

    refs = repo.refs

    if not name:
        if delete:
        if refs.current_branch() == name:
            click.echo(error(f"Cannot delete branch '{name}' checked out"))
            raise click.Abort()
        try:
            deleted = refs.delete_branch(name)
        except (TwigError, ValueError) as e:
            click.echo(error(str(e)))
            raise click.Abort()
        if not deleted:
            click.echo(error(f"Branch '{name}' not found"))
            raise click.Abort()
        click.echo(success(f"Deleted branch {name}"))
        return

    head = refs.head_hash()
    if head is None:
        click.echo(error(f"Not a valid object name: '{refs.head_description()}'"))
        raise click.Abort()

    try:
        created = refs.create_branch(name, head)
    except (TwigError, ValueError) as e:
        click.echo(error(str(e)))
        raise click.Abort()

    if not created:
        click.echo(error(f"A branch named '{name}' already exists"))
        raise click.Abort()

    click.echo(success(f"Created branch '{name}' at {head[:7]}"))
    click.echo(info(f"Switch to it with: twig checkout {name}"))
