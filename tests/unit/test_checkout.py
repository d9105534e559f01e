"""Unit tests for checkout and working-copy synchronization."""

import pytest
from twig.core.errors import (
    BareRepositoryViolation, NotACommit, UnknownRevision, UnresolvedConflicts, UnstagedLocalChanges
)
from twig.core.objects import ObjectKind
from twig.operations.checkout import CheckoutState
from tests.conftest import commit_files, diverged_repo, read_file, snapshot, write_file


@pytest.fixture
def two_branches(repo_with_config):
    """
    main: shared.txt=v1, dirty.txt=d1
    other: shared.txt=v2 (dirty.txt untouched)
    """
    repo = repo_with_config
    base = commit_files(repo, {'shared.txt': 'v1\n', 'dirty.txt': 'd1\n'}, 'base')
    repo.refs.create_branch('other', base)
    repo.working_copy.checkout('other')
    other_tip = commit_files(repo, {'shared.txt': 'v2\n'}, 'other work')
    repo.working_copy.checkout('main')
    return repo, base, other_tip


def test_switch_branch_updates_files_and_head(two_branches):
    repo, base, other_tip = two_branches
    result = repo.working_copy.checkout('other')

    assert result.message == "Switched to branch 'other'"
    assert not result.detached
    assert repo.refs.current_branch() == 'other'
    assert read_file(repo, 'shared.txt') == 'v2\n'
    assert repo.load_index().toc() == repo.trees.commit_toc(other_tip)


def test_dirty_file_untouched_by_switch_is_preserved(two_branches):
    repo = two_branches[0]
    write_file(repo, 'dirty.txt', 'local edit\n')

    repo.working_copy.checkout('other')
    assert read_file(repo, 'dirty.txt') == 'local edit\n'


def test_dirty_file_changed_by_switch_blocks_checkout(two_branches):
    repo = two_branches[0]
    write_file(repo, 'shared.txt', 'local edit\n')
    write_file(repo, 'dirty.txt', 'unrelated edit\n')
    write_file(repo, 'scratch.txt', 'untracked\n')
    before = snapshot(repo)

    with pytest.raises(UnstagedLocalChanges) as exc_info:
        repo.working_copy.checkout('other')
    assert exc_info.value.paths == ['shared.txt']
    assert repo.refs.current_branch() == 'main'
    assert snapshot(repo) == before


def test_dirty_file_matching_target_still_blocks_checkout(two_branches):
    repo = two_branches[0]
    write_file(repo, 'shared.txt', 'v2\n')
    before = snapshot(repo)

    with pytest.raises(UnstagedLocalChanges) as exc_info:
        repo.working_copy.checkout('other')
    assert exc_info.value.paths == ['shared.txt']
    assert snapshot(repo) == before


def test_staged_change_survives_switch(two_branches):
    repo = two_branches[0]
    write_file(repo, 'dirty.txt', 'staged\n')
    repo.staging.add('dirty.txt')

    repo.working_copy.checkout('other')
    staged = repo.diff.staged_changes()
    assert list(staged) == ['dirty.txt']


def test_checkout_current_branch_is_noop(two_branches):
    repo = two_branches[0]
    result = repo.working_copy.checkout('main')
    assert result.already
    assert result.message == 'Already on main'


def test_checkout_hash_detaches_head(two_branches):
    repo, base, other_tip = two_branches
    result = repo.working_copy.checkout(other_tip)

    assert result.detached
    assert repo.refs.is_detached()
    assert repo.refs.head_hash() == other_tip
    assert 'detached HEAD' in result.message

    again = repo.working_copy.checkout(other_tip)
    assert again.already


def test_commit_on_detached_head_moves_head_only(two_branches):
    repo, base, other_tip = two_branches
    repo.working_copy.checkout(base)
    commit = commit_files(repo, {'new.txt': 'n'}, 'detached work')

    assert repo.refs.head_hash() == commit
    assert repo.refs.resolve('main') == base


def test_checkout_unknown_ref(repo_with_commits):
    with pytest.raises(UnknownRevision):
        repo_with_commits.working_copy.checkout('nope')


def test_checkout_non_commit(repo_with_commits):
    repo = repo_with_commits
    blob_hash = repo.put(b'data', ObjectKind.BLOB)
    with pytest.raises(NotACommit):
        repo.working_copy.checkout(blob_hash)


def test_checkout_in_bare_repository(bare_repo):
    with pytest.raises(BareRepositoryViolation):
        bare_repo.working_copy.checkout('main')


def test_checkout_removes_files_and_empty_dirs(repo_with_config):
    repo = repo_with_config
    base = commit_files(repo, {'top.txt': 't'}, 'base')
    repo.refs.create_branch('old', base)
    commit_files(repo, {'deep/nested/file.txt': 'x'}, 'nested')

    repo.working_copy.checkout('old')
    assert not (repo.work_tree / 'deep').exists()
    assert (repo.work_tree / 'top.txt').exists()


@pytest.fixture
def branch_with_new_paths(repo_with_config):
    """other changes a.txt and adds docs/guide.txt and build; HEAD stays on main."""
    repo = repo_with_config
    base = commit_files(repo, {'a.txt': 'v1\n'}, 'base')
    repo.refs.create_branch('other', base)
    repo.working_copy.checkout('other')
    commit_files(repo, {'a.txt': 'v2\n', 'docs/guide.txt': 'g\n', 'build': 'artifact\n'}, 'other work')
    repo.working_copy.checkout('main')
    return repo


def test_untracked_file_in_place_of_directory_blocks_checkout(branch_with_new_paths):
    repo = branch_with_new_paths
    write_file(repo, 'docs', 'notes\n')
    before = snapshot(repo)

    with pytest.raises(UnstagedLocalChanges) as exc_info:
        repo.working_copy.checkout('other')
    assert exc_info.value.paths == ['docs/guide.txt']
    assert snapshot(repo) == before


def test_untracked_directory_in_place_of_file_blocks_checkout(branch_with_new_paths):
    repo = branch_with_new_paths
    write_file(repo, 'build/out.o', 'compiled\n')
    before = snapshot(repo)

    with pytest.raises(UnstagedLocalChanges) as exc_info:
        repo.working_copy.checkout('other')
    assert exc_info.value.paths == ['build']
    assert snapshot(repo) == before


def test_tracked_file_and_directory_swap_places(repo_with_config):
    repo = repo_with_config
    base = commit_files(repo, {'thing': 'file\n'}, 'base')
    repo.refs.create_branch('old', base)
    repo.staging.rm('thing')
    commit_files(repo, {'thing/inside.txt': 'dir\n'}, 'thing becomes a directory')

    repo.working_copy.checkout('old')
    assert read_file(repo, 'thing') == 'file\n'

    repo.working_copy.checkout('main')
    assert read_file(repo, 'thing/inside.txt') == 'dir\n'



def test_checkout_refused_during_merge(repo_with_config):
    repo = repo_with_config
    diverged_repo(repo, {'f.txt': 'main\n'}, {'f.txt': 'feature\n'}, {'f.txt': 'base\n'})
    repo.merge.merge_ref('feature')

    with pytest.raises(UnresolvedConflicts):
        repo.working_copy.checkout('feature')


def test_state(two_branches):
    repo = two_branches[0]
    assert repo.working_copy.state() is CheckoutState.CLEAN

    write_file(repo, 'dirty.txt', 'edit\n')
    assert repo.working_copy.state() is CheckoutState.DIRTY


def test_state_conflicted(repo_with_config):
    repo = repo_with_config
    diverged_repo(repo, {'f.txt': 'main\n'}, {'f.txt': 'feature\n'}, {'f.txt': 'base\n'})
    repo.merge.merge_ref('feature')
    assert repo.working_copy.state() is CheckoutState.CONFLICTED
