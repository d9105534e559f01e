"""Core functionality for Twig.

This module contains the core data structures:
- Twig objects (Blob, Tree, Commit) and the object store
- Repository handle
- Index/staging area and tree building
- Reference management
- Configuration management
- Hashing utilities and the error taxonomy

For operations like diff, merge, checkout and commit, see twig.operations
"""

from twig.core.objects import ObjectKind, TwigObject, Blob, Tree, TreeEntry, Commit
from twig.core.repository import Repository
from twig.core.hash import hash_object, digest_object, hash_file
from twig.core.index import Index, IndexEntry
from twig.core.refs import RefManager, RefValue
from twig.core.tree_builder import TreeBuilder, BlobNode, TreeNode
from twig.core.config import Config, get_config

__all__ = [
    'ObjectKind',
    'TwigObject',
    'Blob',
    'Tree',
    'TreeEntry',
    'Commit',
    'Repository',
    'Index',
    'IndexEntry',
    'RefManager',
    'RefValue',
    'TreeBuilder',
    'BlobNode',
    'TreeNode',
    'Config',
    'get_config',
    'hash_object',
    'digest_object',
    'hash_file',
]
