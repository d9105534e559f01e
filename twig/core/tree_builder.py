"""Conversion between the flat index and nested tree objects."""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Union

from .errors import NotACommit, ObjectNotFound, UnresolvedConflicts
from .objects import Commit, ObjectKind, Tree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlobNode:
    """Leaf of a tree snapshot: one file version."""
    hash: str


@dataclass(frozen=True)
class TreeNode:
    """Directory snapshot: an immutable name -> node mapping."""
    children: Mapping[str, 'Node']

    @classmethod
    def of(cls, children: Mapping[str, 'Node']) -> 'TreeNode':
        return cls(MappingProxyType({name: children[name] for name in sorted(children)}))


Node = Union[BlobNode, TreeNode]


def nest(toc: Mapping[str, str]) -> TreeNode:
    """
    Group a flat path -> blob hash mapping into a TreeNode hierarchy.

    Raises:
        ValueError: If a path is used both as a file and as a directory
    """
    root: dict = {}
    for path in sorted(toc):
        parts = path.split('/')
        if any(part in ('', '.', '..') for part in parts):
            raise ValueError(f"Invalid path in index: {path!r}")

        level = root
        for part in parts[:-1]:
            child = level.setdefault(part, {})
            if not isinstance(child, dict):
                raise ValueError(f"{path} is inside {part}, which is a file")
            level = child
        if isinstance(level.get(parts[-1]), dict):
            raise ValueError(f"{path} is both a file and a directory")
        level[parts[-1]] = BlobNode(toc[path])

    def freeze(level: dict) -> TreeNode:
        return TreeNode.of({
            name: freeze(child) if isinstance(child, dict) else child
            for name, child in level.items()
        })

    return freeze(root)


def flatten_node(node: TreeNode, prefix: str = '') -> Dict[str, str]:
    """Inverse of nest: path -> blob hash for every leaf under node."""
    files = {}
    for name, child in node.children.items():
        path = f"{prefix}{name}"
        if isinstance(child, BlobNode):
            files[path] = child.hash
        else:
            files.update(flatten_node(child, f"{path}/"))
    return files


class TreeBuilder:
    """
    Builds tree objects from the index and reads them back.

    Trees are written strictly bottom-up: a subtree is stored before the
    tree that names it, so a stored tree never references a missing child.
    """

    def __init__(self, repo):
        self.repo = repo

    def build_tree(self, index) -> str:
        """
        Write the tree objects for the index's stage-0 entries.

        Returns:
            Hash of the root tree

        Raises:
            UnresolvedConflicts: If the index holds conflict stages
            ObjectNotFound: If an entry names a blob that was never stored
        """
        conflicted = index.conflicted_paths()
        if conflicted:
            raise UnresolvedConflicts(conflicted)

        toc = index.toc()
        for path, blob_hash in toc.items():
            if not self.repo.exists(blob_hash):
                raise ObjectNotFound(blob_hash)

        root_hash = self.write_node(nest(toc))
        logger.debug("Built tree %s from %d index entries", root_hash, len(toc))
        return root_hash

    def write_node(self, node: TreeNode) -> str:
        """Store node and all its subtrees, deepest first."""
        tree = Tree()
        for name, child in node.children.items():
            if isinstance(child, BlobNode):
                tree.add_entry(name, ObjectKind.BLOB, child.hash)
            else:
                tree.add_entry(name, ObjectKind.TREE, self.write_node(child))
        return self.repo.write_object(tree)

    def read_tree(self, tree_hash: str) -> TreeNode:
        """Load a stored tree and its subtrees as a TreeNode."""
        tree = self.repo.read_tree_object(tree_hash)
        return TreeNode.of({
            entry.name: self.read_tree(entry.hash) if entry.is_tree else BlobNode(entry.hash)
            for entry in tree.entries
        })

    def flatten(self, tree_hash: Optional[str]) -> Dict[str, str]:
        """Path -> blob hash for every file in a stored tree (empty for None)."""
        files: Dict[str, str] = {}
        if tree_hash is None:
            return files

        pending = [(tree_hash, '')]
        while pending:
            current, prefix = pending.pop()
            for entry in self.repo.read_tree_object(current).entries:
                path = f"{prefix}{entry.name}"
                if entry.is_tree:
                    pending.append((entry.hash, f"{path}/"))
                else:
                    files[path] = entry.hash
        return files

    def tree_of(self, obj_hash: Optional[str]) -> Optional[str]:
        """
        Tree hash for a commit or tree hash; None stays None (the empty tree).

        Raises:
            NotACommit: If obj_hash names a blob
        """
        if obj_hash is None:
            return None
        obj = self.repo.read_object(obj_hash)
        if isinstance(obj, Commit):
            return obj.tree
        if isinstance(obj, Tree):
            return obj_hash
        raise NotACommit(obj_hash, obj.type)

    def commit_toc(self, commit_hash: Optional[str]) -> Dict[str, str]:
        """Flat contents of a commit's tree; empty for an unborn (None) commit."""
        if commit_hash is None:
            return {}
        return self.flatten(self.repo.read_commit(commit_hash).tree)
