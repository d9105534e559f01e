"""Status command - show the working tree state."""

import click
from twig.core.errors import TwigError
from twig.core.repository import Repository
from twig.cli.output import error, info, warning, status_line


@click.command('status')
def status_cmd():
    """
    Show the working tree status.

    Lists unmerged paths, changes staged for the next commit, changes
    not yet staged, and untracked files.
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a twig repository"))
        raise click.Abort()

    try:
        repo.assert_not_bare('status')
        index = repo.load_index()
        diff = repo.diff
        conflicted = index.conflicted_paths()
        staged = {path: change for path, change in diff.staged_changes(index).items()
                  if path not in conflicted}
        unstaged = diff.unstaged_changes(index)
        untracked = diff.untracked_files(index)
    except TwigError as e:
        click.echo(error(str(e)))
        raise click.Abort()

    refs = repo.refs
    branch = refs.current_branch()
    if branch:
        click.echo(f"On branch {branch}")
    else:
        click.echo(f"HEAD detached at {refs.head_hash()[:7]}")

    if repo.merge.in_progress():
        click.echo(warning("You have unmerged paths." if index.has_conflicts()
                           else "All conflicts fixed but you are still merging."))

    if conflicted:
        click.echo("\nUnmerged paths:")
        for path in conflicted:
            click.echo(f"  {status_line('U', path)}")

    if staged:
        click.echo("\nChanges to be committed:")
        for path, label in diff.status_labels(staged).items():
            click.echo(f"  {status_line(label, path)}")

    if unstaged:
        click.echo("\nChanges not staged for commit:")
        for path, label in diff.status_labels(unstaged).items():
            click.echo(f"  {status_line(label, path)}")

    if untracked:
        click.echo("\nUntracked files:")
        for path in untracked:
            click.echo(f"  {path}")

    if not (conflicted or staged or unstaged or untracked):
        click.echo(info("Nothing to commit, working tree clean"))
