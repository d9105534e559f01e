"""Commit creation for Twig."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from twig.core.errors import NothingToCommit, ObjectNotFound, UnresolvedConflicts
from twig.core.objects import Commit
from twig.core.refs import HEAD, HEADS_PREFIX

logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    """A commit that was written and the ref it advanced."""
    commit_hash: str
    tree_hash: str
    parents: List[str] = field(default_factory=list)
    ref: str = HEAD
    message: str = ""
    is_merge: bool = False

    def summary(self) -> str:
        """One-line description in the style ``[main 1a2b3c4] message``."""
        branch = self.ref[len(HEADS_PREFIX):] if self.ref.startswith(HEADS_PREFIX) else self.ref
        first_line = self.message.splitlines()[0] if self.message else ''
        return f"[{branch} {self.commit_hash[:7]}] {first_line}"


class CommitBuilder:
    """
    Writes commit objects and runs the commit transaction.

    Objects go in strictly before the ref that names them: blobs are
    already stored by staging, the tree is built here, then the commit,
    and only then does HEAD's branch move.
    """

    def __init__(self, repo):
        """
        Args:
            repo: Repository instance
        """
        self.repo = repo

    def write_commit(self, tree_hash: str, message: str, parent_hashes: List[str]) -> str:
        """
        Store a commit object for tree_hash with the given parents.

        Raises:
            ObjectNotFound: If the tree or a parent is not stored
        """
        for obj_hash in [tree_hash, *parent_hashes]:
            if not self.repo.exists(obj_hash):
                raise ObjectNotFound(obj_hash)

        signature = self.repo.config.signature()
        commit = Commit.create(
            tree_hash=tree_hash,
            parent_hashes=parent_hashes,
            author=signature,
            message=message
        )
        return self.repo.write_object(commit)

    def commit(self, message: Optional[str] = None) -> CommitResult:
        """
        Commit the index to the current branch (or detached HEAD).

        During a merge the parents are [HEAD, MERGE_HEAD], the message
        defaults to MERGE_MSG, and the merge state is cleared afterwards.

        Raises:
            BareRepositoryViolation: In a bare repository
            UnresolvedConflicts: If the index still holds conflict stages
            NothingToCommit: If the tree equals HEAD's tree (during a merge
                too), or the index is empty on an unborn branch
        """
        self.repo.assert_not_bare('commit')
        refs = self.repo.refs
        merge = self.repo.merge

        index = self.repo.load_index()
        conflicted = index.conflicted_paths()
        if conflicted:
            raise UnresolvedConflicts(conflicted)

        merging = merge.in_progress()
        head = refs.head_hash()
        tree_hash = self.repo.trees.build_tree(index)

        if head is None and not index.toc():
            raise NothingToCommit(refs.head_description())
        if head is not None and self.repo.read_commit(head).tree == tree_hash:
            raise NothingToCommit(refs.head_description())

        if merging:
            message = merge.read_merge_message() or message
        if not message:
            raise ValueError("Commit message required")

        parents = refs.parent_hashes_for_next_commit()
        commit_hash = self.write_commit(tree_hash, message, parents)
        ref = refs.update_ref(HEAD, commit_hash)

        if merging:
            merge.clear_merge_state()

        logger.info("Committed %s on %s (%d parent(s))", commit_hash[:7], ref, len(parents))
        return CommitResult(
            commit_hash=commit_hash,
            tree_hash=tree_hash,
            parents=parents,
            ref=ref,
            message=message,
            is_merge=len(parents) > 1
        )
