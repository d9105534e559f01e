"""Integration tests for twig init."""

from twig.cli.main import cli
from twig.core.repository import Repository


def test_init_current_directory(runner, temp_dir, monkeypatch):
    monkeypatch.chdir(temp_dir)
    result = runner.invoke(cli, ['init'])

    assert result.exit_code == 0
    assert 'Initialized empty Twig repository' in result.output
    assert (temp_dir / '.twig' / 'HEAD').read_text() == 'ref: refs/heads/main\n'


def test_init_new_directory(runner, temp_dir, monkeypatch):
    monkeypatch.chdir(temp_dir)
    result = runner.invoke(cli, ['init', 'project'])

    assert result.exit_code == 0
    assert (temp_dir / 'project' / '.twig').is_dir()


def test_init_twice_fails(runner, temp_dir, monkeypatch):
    monkeypatch.chdir(temp_dir)
    runner.invoke(cli, ['init'])
    result = runner.invoke(cli, ['init'])

    assert result.exit_code != 0
    assert 'already exists' in result.output


def test_init_bare(runner, temp_dir, monkeypatch):
    monkeypatch.chdir(temp_dir)
    result = runner.invoke(cli, ['init', '--bare', 'store.twig'])

    assert result.exit_code == 0
    assert 'bare' in result.output
    repo = Repository.find_repository(temp_dir / 'store.twig')
    assert repo.is_bare


def test_working_copy_command_in_bare_repository(runner, temp_dir, monkeypatch):
    monkeypatch.chdir(temp_dir)
    runner.invoke(cli, ['init', '--bare', 'store.twig'])
    monkeypatch.chdir(temp_dir / 'store.twig')

    result = runner.invoke(cli, ['status'])
    assert result.exit_code != 0
    assert 'must be run in a work tree' in result.output


def test_command_outside_repository(runner, temp_dir, monkeypatch):
    monkeypatch.chdir(temp_dir)
    result = runner.invoke(cli, ['status'])

    assert result.exit_code != 0
    assert 'Not a twig repository' in result.output


def test_help_and_version(runner):
    assert 'twig' in runner.invoke(cli, ['--help']).output
    assert '0.1.0' in runner.invoke(cli, ['--version']).output
