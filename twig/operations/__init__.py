"""Operations module for high-level Twig operations.

This module contains the business logic for Twig operations like:
- Diff computation
- Merge algorithms
- Checkout and working-copy synchronization
- Commit creation
- Staging (add / rm)
"""

from twig.operations.diff import DiffEngine, FileChange, ChangeStatus
from twig.operations.merge import MergeEngine, MergeResult, MergeConflict
from twig.operations.checkout import WorkingCopy, CheckoutResult, CheckoutState
from twig.operations.commit import CommitBuilder, CommitResult
from twig.operations.staging import StagingManager

__all__ = [
    'DiffEngine', 'FileChange', 'ChangeStatus',
    'MergeEngine', 'MergeResult', 'MergeConflict',
    'WorkingCopy', 'CheckoutResult', 'CheckoutState',
    'CommitBuilder', 'CommitResult',
    'StagingManager',
]
