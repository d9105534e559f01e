"""Utilities module for common helper functions.

This module contains:
- Atomic file writes
- Working-copy file listing
- Empty directory pruning
"""

from twig.utils.fs import atomic_write_bytes, atomic_write_text, list_files, prune_empty_dirs

__all__ = [
    'atomic_write_bytes', 'atomic_write_text', 'list_files', 'prune_empty_dirs',
]
