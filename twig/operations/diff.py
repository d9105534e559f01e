"""Diff engine for comparing trees, the index and the working copy."""

from dataclasses import dataclass
from difflib import unified_diff
from enum import Enum
from typing import Dict, List, Optional

from twig.core.hash import hash_file
from twig.core.objects import TreeEntry
from twig.utils.fs import list_files


class ChangeStatus(Enum):
    """Kind of change at one path, valued by its display letter."""
    ADDED = 'A'
    MODIFIED = 'M'
    REMOVED = 'D'


@dataclass(frozen=True)
class FileChange:
    """A path whose blob differs between two snapshots."""
    path: str
    status: ChangeStatus
    old: Optional[str]
    new: Optional[str]

    def __repr__(self) -> str:
        return f"FileChange({self.status.value} {self.path})"


def classify(old: Optional[str], new: Optional[str]) -> Optional[ChangeStatus]:
    """Status of a path given its blob hash on each side (None = absent)."""
    if old == new:
        return None
    if old is None:
        return ChangeStatus.ADDED
    if new is None:
        return ChangeStatus.REMOVED
    return ChangeStatus.MODIFIED


class DiffEngine:
    """
    Engine for computing path-level change sets.

    Supports:
    - Tree/commit diffing, recursing only into subtrees whose hashes differ
    - Flat mapping diffing (index, working copy)
    - The overwrite-safety predicate used by checkout and merge
    - Unified patch text for a single change
    """

    def __init__(self, repo):
        """
        Args:
            repo: Repository instance
        """
        self.repo = repo

    def diff(self, hash_a: Optional[str] = None, hash_b: Optional[str] = None) -> Dict[str, FileChange]:
        """
        Compute the changes going from hash_a to hash_b.

        Args:
            hash_a: Commit or tree hash; None is the empty tree
            hash_b: Commit or tree hash; None is the empty tree

        Returns:
            Mapping of path to FileChange, sorted by path
        """
        trees = self.repo.trees
        changes: Dict[str, FileChange] = {}
        self._diff_trees(trees.tree_of(hash_a), trees.tree_of(hash_b), '', changes)
        return dict(sorted(changes.items()))

    def _entries(self, tree_hash: Optional[str]) -> Dict[str, TreeEntry]:
        if tree_hash is None:
            return {}
        return {entry.name: entry for entry in self.repo.read_tree_object(tree_hash).entries}

    def _diff_trees(self, tree_a: Optional[str], tree_b: Optional[str], prefix: str,
                    changes: Dict[str, FileChange]) -> None:
        # Identical hashes mean identical subtrees
        if tree_a == tree_b:
            return

        entries_a = self._entries(tree_a)
        entries_b = self._entries(tree_b)

        for name in sorted(set(entries_a) | set(entries_b)):
            entry_a = entries_a.get(name)
            entry_b = entries_b.get(name)
            path = f"{prefix}{name}"

            blob_a = entry_a.hash if entry_a is not None and not entry_a.is_tree else None
            blob_b = entry_b.hash if entry_b is not None and not entry_b.is_tree else None
            subtree_a = entry_a.hash if entry_a is not None and entry_a.is_tree else None
            subtree_b = entry_b.hash if entry_b is not None and entry_b.is_tree else None

            if subtree_a != subtree_b:
                self._diff_trees(subtree_a, subtree_b, f"{path}/", changes)

            status = classify(blob_a, blob_b)
            if status is not None:
                changes[path] = FileChange(path, status, blob_a, blob_b)

    def diff_tocs(self, old: Dict[str, str], new: Dict[str, str]) -> Dict[str, FileChange]:
        """Compute the changes between two flat path -> blob hash mappings."""
        changes = {}
        for path in sorted(set(old) | set(new)):
            status = classify(old.get(path), new.get(path))
            if status is not None:
                changes[path] = FileChange(path, status, old.get(path), new.get(path))
        return changes

    def head_toc(self) -> Dict[str, str]:
        """Files of HEAD's tree; empty when HEAD is unborn."""
        return self.repo.trees.commit_toc(self.repo.refs.head_hash())

    def index_toc(self, index=None) -> Dict[str, str]:
        """Stage-0 files of the index."""
        if index is None:
            index = self.repo.load_index()
        return index.toc()

    def working_copy_toc(self, index=None) -> Dict[str, str]:
        """
        Blob hashes of the tracked files as they are on disk.

        Every index path (any stage) that exists on disk is hashed; nothing
        is written to the object store.
        """
        if index is None:
            index = self.repo.load_index()
        files = {}
        for path in index.paths():
            full_path = self.repo.work_tree / path
            if full_path.is_file():
                files[path] = hash_file(full_path)
        return files

    def changes(self, ref_a: Optional[str] = None, ref_b: Optional[str] = None) -> Dict[str, FileChange]:
        """
        Revision-level diff.

        Args:
            ref_a: Revision to diff from; None means HEAD (the empty tree
                while HEAD is unborn)
            ref_b: Revision to diff to; None means the working copy of
                the tracked files

        Raises:
            UnknownRevision: If a given revision does not resolve
        """
        refs = self.repo.refs
        hash_a = refs.resolve(ref_a) if ref_a is not None else refs.head_hash()
        if ref_b is not None:
            return self.diff(hash_a, refs.resolve(ref_b))

        self.repo.assert_not_bare('diff against the working copy')
        old = self.repo.trees.flatten(self.repo.trees.tree_of(hash_a))
        return self.diff_tocs(old, self.working_copy_toc())

    def local_changes(self) -> Dict[str, FileChange]:
        """Changes from HEAD's tree to the working copy."""
        return self.diff_tocs(self.head_toc(), self.working_copy_toc())

    def overwrite_conflicts(self, target_hash: Optional[str]) -> List[str]:
        """
        Paths a move from HEAD to target_hash would clobber.

        A path is reported when the working copy differs from HEAD there
        and HEAD differs from the target there. Paths that are untouched
        between HEAD and the target are safe even if dirty.

        Args:
            target_hash: Commit the working copy would move to; None is
                the empty tree

        Returns:
            Sorted list of conflicting paths
        """
        local = self.local_changes()
        if not local:
            return []
        incoming = self.diff(self.repo.refs.head_hash(), target_hash)
        return sorted(set(local) & set(incoming))

    def added_or_modified_files(self) -> List[str]:
        """Working-copy paths that differ from HEAD, excluding removals."""
        return [path for path, change in self.local_changes().items()
                if change.status is not ChangeStatus.REMOVED]

    def staged_changes(self, index=None) -> Dict[str, FileChange]:
        """Changes from HEAD's tree to the index."""
        if index is None:
            index = self.repo.load_index()
        return self.diff_tocs(self.head_toc(), self.index_toc(index))

    def unstaged_changes(self, index=None) -> Dict[str, FileChange]:
        """Changes from the index to the working copy, for stage-0 paths."""
        if index is None:
            index = self.repo.load_index()
        staged = self.index_toc(index)
        on_disk = {path: blob for path, blob in self.working_copy_toc(index).items() if path in staged}
        return self.diff_tocs(staged, on_disk)

    def untracked_files(self, index=None) -> List[str]:
        """Working-copy files that have no index entry."""
        if index is None:
            index = self.repo.load_index()
        tracked = set(index.paths())
        on_disk = list_files(self.repo.work_tree, self.repo.work_tree, self.repo.twig_dir)
        return [path for path in on_disk if path not in tracked]

    @staticmethod
    def status_labels(changes: Dict[str, FileChange]) -> Dict[str, str]:
        """Single-letter display code per path (A, M or D)."""
        return {path: change.status.value for path, change in changes.items()}

    def patch(self, change: FileChange) -> List[str]:
        """Unified diff lines for one change."""
        old_lines = self._blob_lines(change.old, change.path)
        new_lines = self._blob_lines(change.new, change.path)
        fromfile = f"a/{change.path}" if change.old else '/dev/null'
        tofile = f"b/{change.path}" if change.new else '/dev/null'
        return list(unified_diff(old_lines, new_lines, fromfile=fromfile, tofile=tofile, lineterm=''))

    def _blob_lines(self, blob_hash: Optional[str], path: str) -> List[str]:
        if blob_hash is None:
            return []
        if self.repo.exists(blob_hash):
            data = self.repo.get(blob_hash)
        else:
            # Working-copy content is hashed but not stored
            data = (self.repo.work_tree / path).read_bytes()
        return data.decode('utf-8', errors='replace').splitlines()
