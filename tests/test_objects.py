"""Object model tests."""

import pytest
from twig.core.objects import (
    Blob, Commit, ObjectKind, Tree, TreeEntry, BLOB_MODE, TREE_MODE, OBJECT_CLASSES, parse_object
)

EMPTY_TREE_HASH = '4b825dc642cb6eb9a060e54bf8d69288fbee4904'


class TestObjectKind:

    def test_parse_known_kinds(self):
        assert ObjectKind.parse('blob') is ObjectKind.BLOB
        assert ObjectKind.parse('tree') is ObjectKind.TREE
        assert ObjectKind.parse('commit') is ObjectKind.COMMIT

    def test_parse_unknown_kind(self):
        with pytest.raises(ValueError):
            ObjectKind.parse('tag')

    def test_every_kind_has_a_class(self):
        assert set(OBJECT_CLASSES) == set(ObjectKind)


class TestBlob:

    def test_blob_hash(self):
        assert Blob(b'hello').hash == 'b6fc4c620b67d95f953a5c1c1230aaab5db5a1b0'

    def test_blob_roundtrip(self, sample_blob):
        restored = parse_object(ObjectKind.BLOB, sample_blob.serialize())
        assert isinstance(restored, Blob)
        assert restored.data == sample_blob.data
        assert restored.hash == sample_blob.hash

    def test_from_file(self, tmp_path):
        path = tmp_path / 'a.txt'
        path.write_bytes(b'content')
        assert Blob.from_file(path).data == b'content'


class TestTree:

    def test_empty_tree_hash_matches_git(self):
        assert Tree().hash == EMPTY_TREE_HASH

    def test_entries_sorted_by_name(self):
        tree = Tree()
        tree.add_entry('b.txt', ObjectKind.BLOB, 'b' * 40)
        tree.add_entry('a.txt', ObjectKind.BLOB, 'a' * 40)
        assert [entry.name for entry in tree.entries] == ['a.txt', 'b.txt']

    def test_hash_independent_of_insertion_order(self):
        first = Tree()
        first.add_entry('a', ObjectKind.BLOB, 'a' * 40)
        first.add_entry('b', ObjectKind.TREE, 'b' * 40)
        second = Tree()
        second.add_entry('b', ObjectKind.TREE, 'b' * 40)
        second.add_entry('a', ObjectKind.BLOB, 'a' * 40)
        assert first.hash == second.hash

    def test_mode_derived_from_kind(self):
        assert TreeEntry('f', ObjectKind.BLOB, 'a' * 40).mode == BLOB_MODE
        assert TreeEntry('d', ObjectKind.TREE, 'a' * 40).mode == TREE_MODE

    def test_entry_cannot_reference_commit(self):
        with pytest.raises(ValueError):
            TreeEntry('x', ObjectKind.COMMIT, 'a' * 40)

    @pytest.mark.parametrize('name', ['', 'a/b', 'nul\0name'])
    def test_invalid_entry_names(self, name):
        with pytest.raises(ValueError):
            Tree().add_entry(name, ObjectKind.BLOB, 'a' * 40)

    def test_serialize_format(self):
        tree = Tree()
        tree.add_entry('file.txt', ObjectKind.BLOB, 'ab' * 20)
        assert tree.serialize() == b'100644 file.txt\x00' + bytes.fromhex('ab' * 20)

    def test_tree_roundtrip(self, sample_tree):
        restored = parse_object(ObjectKind.TREE, sample_tree.serialize())
        assert restored.entries == sample_tree.entries
        assert restored.hash == sample_tree.hash

    def test_subtree_kind_survives_roundtrip(self):
        tree = Tree()
        tree.add_entry('dir', ObjectKind.TREE, 'c' * 40)
        restored = parse_object(ObjectKind.TREE, tree.serialize())
        assert restored.get('dir').is_tree


class TestCommit:

    def test_create_defaults_committer_to_author(self):
        commit = Commit.create('a' * 40, [], 'A <a@x>', 'msg', timestamp=100)
        assert commit.committer == 'A <a@x>'
        assert commit.author_time == commit.committer_time == 100

    def test_serialize_format(self):
        commit = Commit.create('a' * 40, ['b' * 40], 'A <a@x>', 'hello', timestamp=100)
        lines = commit.serialize().decode().split('\n')
        assert lines[0] == 'tree ' + 'a' * 40
        assert lines[1] == 'parent ' + 'b' * 40
        assert lines[2] == 'author A <a@x> 100 +0000'
        assert lines[3] == 'committer A <a@x> 100 +0000'
        assert lines[4] == ''
        assert lines[5] == 'hello'

    def test_roundtrip_preserves_parent_order(self):
        parents = ['b' * 40, 'c' * 40]
        commit = Commit.create('a' * 40, parents, 'A <a@x>', 'merge\n\nbody', timestamp=5)
        restored = parse_object(ObjectKind.COMMIT, commit.serialize())
        assert restored.parents == parents
        assert restored.message == 'merge\n\nbody'
        assert restored.is_merge
        assert restored.hash == commit.hash

    def test_root_commit_is_not_merge(self, sample_commit):
        assert sample_commit.parents == []
        assert not sample_commit.is_merge
