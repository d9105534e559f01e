"""Working-copy synchronization and the checkout state machine."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, Iterable, List

from twig.core.errors import NotACommit, UnresolvedConflicts, UnstagedLocalChanges
from twig.core.objects import ObjectKind
from twig.core.refs import HEAD, HEADS_PREFIX
from twig.operations.diff import FileChange
from twig.utils.fs import list_files, prune_empty_dirs

logger = logging.getLogger(__name__)


class CheckoutState(Enum):
    """Where the working copy stands relative to HEAD."""
    CLEAN = 'clean'
    DIRTY = 'dirty'
    CONFLICTED = 'conflicted'


@dataclass
class CheckoutResult:
    """Outcome of a checkout."""
    ref: str
    target: str
    detached: bool
    message: str
    changes: Dict[str, FileChange] = field(default_factory=dict)
    already: bool = False


class WorkingCopy:
    """
    Keeps the on-disk files and the index in step with HEAD.

    Checkout transitions:
    - resolve the ref (UnknownRevision / NotACommit)
    - no-op if it names the current position
    - refuse while a merge is unresolved or local edits would be lost
    - refuse if a file or directory on disk blocks a path to be written
    - apply diff(HEAD, target) to disk and index, then move HEAD
    Any refusal happens before the first file is touched.
    """

    def __init__(self, repo):
        """
        Args:
            repo: Repository instance
        """
        self.repo = repo

    def state(self) -> CheckoutState:
        """Classify the working copy as CLEAN, DIRTY or CONFLICTED."""
        index = self.repo.load_index()
        if self.repo.merge.in_progress() or index.has_conflicts():
            return CheckoutState.CONFLICTED

        diff = self.repo.diff
        if diff.staged_changes(index) or diff.unstaged_changes(index):
            return CheckoutState.DIRTY
        return CheckoutState.CLEAN

    def path_collisions(self, changes: Dict[str, FileChange], extra_paths: Iterable[str] = ()) -> List[str]:
        """
        Paths that apply() could not write because something of the other
        kind is in the way on disk.

        A file to be written collides with a plain file at one of its
        parent paths that is not itself being removed, and with a
        directory at its own path that would still hold files once the
        removals in changes have run.

        Args:
            changes: The changes apply() would perform
            extra_paths: Further paths that will be written, such as
                conflict-marked files

        Returns:
            Sorted list of colliding paths
        """
        work_tree = self.repo.work_tree
        removed = {path for path, change in changes.items() if change.new is None}
        written = [path for path, change in changes.items() if change.new is not None]
        written.extend(extra_paths)

        blocked = set()
        for path in written:
            full_path = work_tree / path
            if full_path.is_dir():
                leftover = [p for p in list_files(work_tree, full_path, self.repo.twig_dir) if p not in removed]
                if leftover:
                    blocked.add(path)

            for parent in PurePosixPath(path).parents:
                parent_path = parent.as_posix()
                if parent_path == '.':
                    break
                if parent_path not in removed and (work_tree / parent_path).is_file():
                    blocked.add(path)
                    break

        return sorted(blocked)

    def apply(self, changes: Dict[str, FileChange]) -> None:
        """
        Write each change's new side to disk.

        Removals run first so a file can be replaced by a directory of
        the same name; directories left empty are pruned.
        """
        work_tree = self.repo.work_tree

        for change in changes.values():
            if change.new is None:
                full_path = work_tree / change.path
                if full_path.is_file():
                    full_path.unlink()
                    prune_empty_dirs(work_tree, full_path)

        for change in changes.values():
            if change.new is not None:
                full_path = work_tree / change.path
                full_path.parent.mkdir(parents=True, exist_ok=True)
                full_path.write_bytes(self.repo.get(change.new))

    def apply_to_index(self, index, changes: Dict[str, FileChange]) -> None:
        """Restage each changed path to its new side (or drop it)."""
        for change in changes.values():
            if change.new is None:
                index.unstage(change.path)
                continue

            full_path = self.repo.work_tree / change.path
            if full_path.is_file():
                stat = full_path.stat()
                index.stage(change.path, change.new, size=stat.st_size, mtime=int(stat.st_mtime))
            else:
                index.stage(change.path, change.new)

    def write_conflicts(self, conflicts: Iterable) -> None:
        """Write the marked-up version of each conflict record to disk."""
        for conflict in conflicts:
            full_path = self.repo.work_tree / conflict.path
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(conflict.render(self.repo))

    def checkout(self, ref: str) -> CheckoutResult:
        """
        Move HEAD, the index and the working copy to ref.

        A branch name attaches HEAD to that branch; anything else (a
        literal commit hash, MERGE_HEAD) detaches HEAD at the commit.

        Raises:
            BareRepositoryViolation: In a bare repository
            UnknownRevision: If ref does not resolve
            NotACommit: If ref resolves to a tree or blob
            UnresolvedConflicts: While a merge is in progress
            UnstagedLocalChanges: If local edits would be overwritten or an
                untracked path is in the way
        """
        self.repo.assert_not_bare('checkout')
        refs = self.repo.refs

        target = refs.resolve(ref)
        kind = self.repo.kind_of(target)
        if kind is not ObjectKind.COMMIT:
            raise NotACommit(ref, kind.value)

        branch = ref[len(HEADS_PREFIX):] if ref.startswith(HEADS_PREFIX) else ref
        head = refs.head_hash()
        if ref == HEAD or branch == refs.current_branch() or (refs.is_detached() and ref == head):
            return CheckoutResult(ref=ref, target=target, detached=refs.is_detached(),
                                  message=f"Already on {ref}", already=True)

        if self.repo.merge.in_progress():
            raise UnresolvedConflicts(self.repo.load_index().conflicted_paths())

        clobbered = self.repo.diff.overwrite_conflicts(target)
        if clobbered:
            raise UnstagedLocalChanges(clobbered)

        changes = self.repo.diff.diff(head, target)
        collisions = self.path_collisions(changes)
        if collisions:
            raise UnstagedLocalChanges(collisions)
        self.apply(changes)

        index = self.repo.load_index()
        self.apply_to_index(index, changes)
        self.repo.save_index(index)

        detached = target == ref or not refs.is_branch(branch)
        if detached:
            refs.write(HEAD, target)
            message = f"Note: checking out {target}\nYou are now in a detached HEAD state."
        else:
            refs.write(HEAD, branch, symbolic=True)
            message = f"Switched to branch '{branch}'"

        logger.info("Checked out %s (%s), %d path(s) updated", ref, target[:7], len(changes))
        return CheckoutResult(ref=ref, target=target, detached=detached, message=message, changes=changes)
