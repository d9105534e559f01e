"""Unit tests for reference management."""

import pytest
from twig.core.errors import ObjectNotFound, SymbolicRefError, UnknownRevision
from twig.core.refs import RefManager, RefValue, is_valid_ref_name, HEAD, MERGE_HEAD


@pytest.fixture
def commit_hash(repo, sample_commit):
    return repo.write_object(sample_commit)


def test_ref_manager_init(repo):
    refs = RefManager(repo)
    assert refs.repo == repo
    assert refs.twig_dir == repo.twig_dir


def test_read_raw_symbolic_head(repo):
    assert repo.refs.read_raw(HEAD) == RefValue(symbolic=True, value='refs/heads/main')


def test_read_raw_missing_ref(repo):
    assert repo.refs.read_raw('nope') is None


def test_unborn_head(repo):
    refs = repo.refs
    assert refs.head_hash() is None
    assert refs.try_resolve(HEAD) is None
    with pytest.raises(UnknownRevision):
        refs.resolve(HEAD)


def test_get_current_branch_on_main(repo):
    assert repo.refs.current_branch() == 'main'
    assert not repo.refs.is_detached()


def test_detached_head(repo, commit_hash):
    refs = repo.refs
    refs.write(HEAD, commit_hash)
    assert refs.is_detached()
    assert refs.current_branch() is None
    assert refs.head_description() == 'detached HEAD'
    assert refs.head_hash() == commit_hash


def test_create_branch(repo, commit_hash):
    refs = repo.refs
    assert refs.create_branch('feature', commit_hash) is True

    branch_file = repo.twig_dir / 'refs' / 'heads' / 'feature'
    assert branch_file.read_text().strip() == commit_hash
    assert refs.is_branch('feature')


def test_create_existing_branch(repo, commit_hash):
    repo.refs.create_branch('feature', commit_hash)
    assert repo.refs.create_branch('feature', commit_hash) is False


@pytest.mark.parametrize('name', [HEAD, MERGE_HEAD, 'refs/heads/x'])
def test_create_branch_rejects_special_names(repo, commit_hash, name):
    with pytest.raises(ValueError):
        repo.refs.create_branch(name, commit_hash)


def test_list_branches(repo, commit_hash):
    refs = repo.refs
    refs.create_branch('zeta', commit_hash)
    refs.create_branch('alpha', commit_hash)
    assert refs.list_branches() == [('alpha', commit_hash), ('zeta', commit_hash)]


def test_delete_branch(repo, commit_hash):
    refs = repo.refs
    refs.create_branch('feature', commit_hash)
    assert refs.delete_branch('feature') is True
    assert not refs.is_branch('feature')
    assert refs.delete_branch('feature') is False


def test_cannot_delete_current_branch(repo, commit_hash):
    repo.refs.update_ref(HEAD, commit_hash)
    assert repo.refs.delete_branch('main') is False


@pytest.mark.parametrize('name', [HEAD, MERGE_HEAD, 'refs/heads/x', 'bad..name'])
def test_delete_branch_rejects_invalid_names(repo, commit_hash, name):
    repo.refs.update_ref(HEAD, commit_hash)
    with pytest.raises(ValueError):
        repo.refs.delete_branch(name)
    assert repo.refs.head_hash() == commit_hash


def test_update_ref_through_symbolic_head(repo, commit_hash):
    refs = repo.refs
    written = refs.update_ref(HEAD, commit_hash)
    assert written == 'refs/heads/main'
    assert refs.read_raw(HEAD).symbolic
    assert refs.resolve('main') == commit_hash
    assert refs.head_hash() == commit_hash


def test_update_ref_detached_rewrites_head(repo, commit_hash, sample_tree):
    refs = repo.refs
    refs.write(HEAD, commit_hash)
    other = repo.write_object(sample_tree)
    assert refs.update_ref(HEAD, other) == HEAD
    assert refs.read_raw(HEAD) == RefValue(symbolic=False, value=other)


def test_write_requires_existing_object(repo):
    with pytest.raises(ObjectNotFound):
        repo.refs.write('feature', 'a' * 40)


def test_resolve_literal_hash(repo, commit_hash):
    assert repo.refs.resolve(commit_hash) == commit_hash


def test_resolve_unknown_hash(repo):
    with pytest.raises(UnknownRevision):
        repo.refs.resolve('a' * 40)


def test_resolve_full_ref_name(repo, commit_hash):
    repo.refs.create_branch('feature', commit_hash)
    assert repo.refs.resolve('refs/heads/feature') == commit_hash


def test_symbolic_cycle_detected(repo):
    (repo.heads_dir / 'a').write_text('ref: refs/heads/b\n')
    (repo.heads_dir / 'b').write_text('ref: refs/heads/a\n')
    with pytest.raises(SymbolicRefError):
        repo.refs.resolve('a')


def test_symbolic_chain_too_deep(repo, commit_hash):
    repo.refs.create_branch('target', commit_hash)
    (repo.heads_dir / 'middle').write_text('ref: refs/heads/target\n')
    repo.refs.write(HEAD, 'middle', symbolic=True)
    with pytest.raises(SymbolicRefError) as exc_info:
        repo.refs.head_hash()
    assert exc_info.value.chain == [HEAD, 'refs/heads/middle', 'refs/heads/target']


def test_parent_hashes_for_next_commit(repo, commit_hash, sample_tree):
    refs = repo.refs
    assert refs.parent_hashes_for_next_commit() == []

    refs.update_ref(HEAD, commit_hash)
    assert refs.parent_hashes_for_next_commit() == [commit_hash]

    other = repo.write_object(sample_tree)
    refs.write(MERGE_HEAD, other)
    assert refs.parent_hashes_for_next_commit() == [commit_hash, other]


@pytest.mark.parametrize('name,valid', [
    ('refs/heads/main', True),
    ('refs/heads/feature/x', True),
    ('', False),
    ('refs/heads/../x', False),
    ('refs/heads/a b', False),
    ('refs/heads/x.lock', False),
    ('/abs', False),
])
def test_is_valid_ref_name(name, valid):
    assert is_valid_ref_name(name) is valid
