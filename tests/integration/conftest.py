"""Fixtures for command-line workflow tests."""

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_repo(repo_with_config, monkeypatch):
    """A configured repository that is also the process working directory."""
    monkeypatch.chdir(repo_with_config.work_tree)
    return repo_with_config
