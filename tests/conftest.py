"""Shared pytest fixtures for Twig tests."""

import pytest
import tempfile
import shutil
from pathlib import Path
from twig.core.config import Config
from twig.core.repository import Repository
from twig.core.objects import Blob, Tree, Commit, ObjectKind
from twig.core.refs import HEAD
from twig.utils.fs import list_files


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path_factory):
    """Keep the user's ~/.twigconfig and TWIG_* variables out of tests."""
    home = tmp_path_factory.mktemp('home')
    monkeypatch.setattr(Config, 'GLOBAL_CONFIG_PATH', home / '.twigconfig')
    for key in ('TWIG_USER_NAME', 'TWIG_USER_EMAIL', 'TWIG_CORE_BARE'):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir).resolve()
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def repo(temp_dir):
    """Create an initialized repository."""
    return Repository(temp_dir).init()


@pytest.fixture
def bare_repo(temp_dir):
    """Create an initialized bare repository."""
    return Repository(temp_dir / 'bare.twig', bare=True).init()


@pytest.fixture
def repo_with_config(repo):
    """Create a repository with a user identity configured."""
    repo.config.set('user', 'name', 'Test User')
    repo.config.set('user', 'email', 'test@example.com')
    return repo


@pytest.fixture
def sample_blob():
    """Create a sample blob object."""
    return Blob(b"Hello, World!\n")


@pytest.fixture
def sample_tree(repo, sample_blob):
    """Create a sample tree with one blob."""
    blob_hash = repo.write_object(sample_blob)
    tree = Tree()
    tree.add_entry('test.txt', ObjectKind.BLOB, blob_hash)
    return tree


@pytest.fixture
def sample_commit(sample_tree, repo):
    """Sample commit object."""
    tree_hash = repo.write_object(sample_tree)
    return Commit.create(
        tree_hash=tree_hash,
        parent_hashes=[],
        author="Test User <test@example.com>",
        message="Test commit"
    )


@pytest.fixture
def repo_with_commits(repo_with_config):
    """Repository with two commits on main: file1.txt, then file2.txt."""
    repo = repo_with_config
    first = commit_files(repo, {'file1.txt': 'Hello, World!'}, 'First commit')
    second = commit_files(repo, {'file2.txt': 'Second file'}, 'Second commit')
    repo.test_commits = [first, second]
    return repo


def write_file(repo, path, content):
    """Write a working-copy file, creating parent directories."""
    full_path = repo.work_tree / path
    full_path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        content = content.encode()
    full_path.write_bytes(content)
    return full_path


def read_file(repo, path):
    return (repo.work_tree / path).read_text()


def commit_files(repo, files, message="Test commit"):
    """
    Write, stage and commit files.

    Args:
        repo: Repository instance
        files: Mapping of path to content
        message: Commit message

    Returns:
        str: Commit hash
    """
    for path, content in files.items():
        write_file(repo, path, content)
        repo.staging.add(path)
    return repo.commits.commit(message).commit_hash


def diverged_repo(repo, main_files, feature_files, base_files=None):
    """
    Build main and feature branches that diverge from a common base.

    Leaves HEAD on main. Returns (base, main_tip, feature_tip).
    """
    base = commit_files(repo, base_files or {'base.txt': 'base\n'}, 'base')
    repo.refs.create_branch('feature', base)

    main_tip = commit_files(repo, main_files, 'main work')
    repo.working_copy.checkout('feature')
    feature_tip = commit_files(repo, feature_files, 'feature work')
    repo.working_copy.checkout('main')
    return base, main_tip, feature_tip


def snapshot(repo):
    """
    Capture HEAD, the index entries and every working-copy file.

    Two snapshots compare equal only if an operation left all three alone.
    """
    files = list_files(repo.work_tree, repo.work_tree, repo.twig_dir)
    return {
        'head': repo.refs.read_raw(HEAD),
        'index': dict(repo.load_index().entries),
        'files': {path: (repo.work_tree / path).read_bytes() for path in files},
    }
