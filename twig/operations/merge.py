"""Merge operations for Twig."""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from twig.core.errors import UnresolvedConflicts, UnstagedLocalChanges
from twig.core.index import IndexEntry, STAGE_BASE, STAGE_OURS, STAGE_THEIRS
from twig.core.refs import HEAD, MERGE_HEAD
from twig.utils.fs import atomic_write_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeConflict:
    """
    The single record of one conflicted path.

    Both the stage 1/2/3 index entries and the conflict-marked working
    copy file are derived from this record. A side is None when the path
    does not exist there.
    """
    path: str
    base: Optional[str]
    ours: Optional[str]
    theirs: Optional[str]
    ours_label: str = HEAD
    theirs_label: str = MERGE_HEAD

    def index_stages(self) -> List[Tuple[int, str]]:
        """(stage, blob hash) pairs for the sides that exist."""
        stages = [(STAGE_BASE, self.base), (STAGE_OURS, self.ours), (STAGE_THEIRS, self.theirs)]
        return [(stage, blob) for stage, blob in stages if blob is not None]

    def render(self, repo) -> bytes:
        """File content with conflict markers around ours and theirs."""
        result = [f"<<<<<<< {self.ours_label}\n".encode()]
        result.extend(self._section(repo, self.ours))
        result.append(b"=======\n")
        result.extend(self._section(repo, self.theirs))
        result.append(f">>>>>>> {self.theirs_label}\n".encode())
        return b''.join(result)

    @staticmethod
    def _section(repo, blob_hash: Optional[str]) -> List[bytes]:
        if blob_hash is None:
            return []
        content = repo.get(blob_hash)
        if content and not content.endswith(b'\n'):
            return [content, b'\n']
        return [content]

    def __repr__(self) -> str:
        return f"MergeConflict({self.path})"


@dataclass
class MergeResult:
    """Result of a merge operation."""
    ours: Optional[str]
    theirs: str
    base: Optional[str] = None
    conflicts: List[MergeConflict] = field(default_factory=list)
    merged_files: Dict[str, str] = field(default_factory=dict)
    is_fast_forward: bool = False
    up_to_date: bool = False
    commit_hash: Optional[str] = None
    message: str = ""

    @property
    def success(self) -> bool:
        return not self.conflicts

    @property
    def conflicted_paths(self) -> List[str]:
        return [conflict.path for conflict in self.conflicts]

    def __repr__(self) -> str:
        if self.up_to_date:
            return "MergeResult(up-to-date)"
        if self.is_fast_forward:
            return "MergeResult(fast-forward, conflicts=0)"
        if self.success:
            return "MergeResult(success, conflicts=0)"
        return f"MergeResult(failed, conflicts={len(self.conflicts)})"


class MergeEngine:
    """
    Handles merge operations for Twig.

    Supports:
    - Merge base finding (nearest common ancestor)
    - Fast-forward merges
    - Three-way merges with per-path conflict records
    - Merge state (MERGE_HEAD, MERGE_MSG) and abort
    """

    def __init__(self, repo):
        """
        Args:
            repo: Repository instance
        """
        self.repo = repo

    def in_progress(self) -> bool:
        """Whether a merge is waiting to be committed (MERGE_HEAD exists)."""
        return self.repo.merge_head_file.exists()

    def get_merge_head(self) -> Optional[str]:
        """Hash stored in MERGE_HEAD, or None."""
        return self.repo.refs.merge_head()

    def read_merge_message(self) -> Optional[str]:
        """Pending merge commit message from MERGE_MSG, or None."""
        if self.repo.merge_msg_file.exists():
            return self.repo.merge_msg_file.read_text()
        return None

    def save_merge_state(self, theirs_hash: str, message: str) -> None:
        """Write MERGE_HEAD and the pending merge message."""
        self.repo.refs.write(MERGE_HEAD, theirs_hash)
        atomic_write_text(self.repo.merge_msg_file, message)

    def clear_merge_state(self) -> None:
        """Remove MERGE_HEAD and MERGE_MSG."""
        self.repo.refs.delete(MERGE_HEAD)
        if self.repo.merge_msg_file.exists():
            self.repo.merge_msg_file.unlink()

    def _ancestor_distances(self, commit_hash: str) -> Dict[str, int]:
        """Breadth-first distance from commit_hash to each of its ancestors (itself at 0)."""
        distances = {commit_hash: 0}
        queue = deque([commit_hash])

        while queue:
            current = queue.popleft()
            for parent in self.repo.read_commit(current).parents:
                if parent not in distances:
                    distances[parent] = distances[current] + 1
                    queue.append(parent)

        return distances

    def find_merge_base(self, commit1_hash: str, commit2_hash: str) -> Optional[str]:
        """
        Find the nearest common ancestor of two commits.

        Both histories are walked breadth-first. Only lowest common
        ancestors are candidates: a common commit that is itself an
        ancestor of another common commit is dropped. Among the rest, the
        smallest combined distance wins; ties go to the smaller of the two
        larger-side distances, then to the lower hash so the answer is
        deterministic.

        Args:
            commit1_hash: First commit
            commit2_hash: Second commit

        Returns:
            Hash of merge base commit, or None if the histories are disjoint
        """
        if commit1_hash == commit2_hash:
            return commit1_hash

        distances1 = self._ancestor_distances(commit1_hash)
        distances2 = self._ancestor_distances(commit2_hash)
        common = set(distances1) & set(distances2)

        if not common:
            return None

        # A dominated commit's own ancestors are already in the set
        dominated = set()
        for candidate in sorted(common):
            if candidate in dominated:
                continue
            dominated.update(h for h in self._ancestor_distances(candidate) if h != candidate)
        lowest = common - dominated

        return min(lowest, key=lambda h: (distances1[h] + distances2[h], max(distances1[h], distances2[h]), h))

    def is_ancestor(self, ancestor_hash: str, descendant_hash: str) -> bool:
        """Whether ancestor_hash is reachable from descendant_hash (or equal to it)."""
        return ancestor_hash in self._ancestor_distances(descendant_hash)

    def can_fast_forward(self, current_hash: Optional[str], target_hash: str) -> bool:
        """
        A fast-forward is possible when the current branch is unborn or
        current is an ancestor of target.
        """
        return current_hash is None or self.is_ancestor(current_hash, target_hash)

    def _check_can_start(self, target_hash: str) -> None:
        """
        Refuse to start a merge that is already running or would clobber edits.

        Raises:
            UnresolvedConflicts: If a merge is in progress
            UnstagedLocalChanges: If local edits would be overwritten
        """
        if self.in_progress():
            raise UnresolvedConflicts(self.repo.load_index().conflicted_paths())

        clobbered = self.repo.diff.overwrite_conflicts(target_hash)
        if clobbered:
            raise UnstagedLocalChanges(clobbered)

    def fast_forward(self, current_hash: Optional[str], target_hash: str) -> MergeResult:
        """
        Move the current branch forward to target_hash.

        The working copy and index receive diff(current, target).
        """
        self.repo.assert_not_bare('merge')
        self._check_can_start(target_hash)

        changes = self.repo.diff.diff(current_hash, target_hash)
        working_copy = self.repo.working_copy
        collisions = working_copy.path_collisions(changes)
        if collisions:
            raise UnstagedLocalChanges(collisions)
        working_copy.apply(changes)

        index = self.repo.load_index()
        working_copy.apply_to_index(index, changes)
        self.repo.save_index(index)

        self.repo.refs.update_ref(HEAD, target_hash)
        logger.info("Fast-forward to %s", target_hash)

        return MergeResult(
            ours=current_hash,
            theirs=target_hash,
            base=current_hash,
            merged_files=self.repo.trees.commit_toc(target_hash),
            is_fast_forward=True,
            commit_hash=target_hash,
            message=f"Fast-forward to {target_hash[:7]}"
        )

    def merge(self, ours_hash: str, theirs_hash: str, label: Optional[str] = None) -> MergeResult:
        """
        Three-way merge of theirs_hash into ours_hash (the current HEAD).

        For each path changed on either side since the merge base:
        - changed on one side only: take that side
        - changed identically on both: take it
        - changed differently on both: record a MergeConflict

        The merged files and index are written, conflicts are staged at
        1/2/3 and marked up on disk, and MERGE_HEAD/MERGE_MSG are saved so
        the next commit has parents [ours, theirs].

        Args:
            ours_hash: Current HEAD commit
            theirs_hash: Commit to merge in
            label: Name of what is merged, for messages and markers

        Raises:
            UnresolvedConflicts: If a merge is already in progress
            UnstagedLocalChanges: If local edits would be overwritten
        """
        self.repo.assert_not_bare('merge')
        if ours_hash != self.repo.refs.head_hash():
            raise ValueError(f"Merge target {ours_hash} is not the current HEAD")
        self.repo.read_commit(ours_hash)
        self.repo.read_commit(theirs_hash)
        self._check_can_start(theirs_hash)

        label = label or theirs_hash[:7]
        base_hash = self.find_merge_base(ours_hash, theirs_hash)
        diff = self.repo.diff
        ours_changes = diff.diff(base_hash, ours_hash)
        theirs_changes = diff.diff(base_hash, theirs_hash)

        ours_files = self.repo.trees.commit_toc(ours_hash)
        merged_files = dict(ours_files)
        conflicts = []

        for path in sorted(set(ours_changes) | set(theirs_changes)):
            ours_change = ours_changes.get(path)
            theirs_change = theirs_changes.get(path)

            if theirs_change is None:
                continue

            if ours_change is None:
                if theirs_change.new is None:
                    merged_files.pop(path, None)
                else:
                    merged_files[path] = theirs_change.new
                continue

            if ours_change.new == theirs_change.new:
                continue

            conflicts.append(MergeConflict(
                path=path,
                base=theirs_change.old,
                ours=ours_change.new,
                theirs=theirs_change.new,
                theirs_label=label
            ))

        changes = diff.diff_tocs(ours_files, merged_files)
        working_copy = self.repo.working_copy
        collisions = working_copy.path_collisions(changes, [c.path for c in conflicts])
        if collisions:
            raise UnstagedLocalChanges(collisions)
        working_copy.apply(changes)
        working_copy.write_conflicts(conflicts)

        index = self.repo.load_index()
        working_copy.apply_to_index(index, changes)
        for conflict in conflicts:
            index.add_conflict(conflict)
        self.repo.save_index(index)

        message = f"Merge {label} into {self.repo.refs.head_description()}"
        self.save_merge_state(theirs_hash, message)

        if conflicts:
            logger.warning("Merge conflicts in %d file(s): %s", len(conflicts),
                           ', '.join(c.path for c in conflicts))
        else:
            logger.info("Merged %s into %s cleanly", theirs_hash[:7], ours_hash[:7])

        return MergeResult(
            ours=ours_hash,
            theirs=theirs_hash,
            base=base_hash,
            conflicts=conflicts,
            merged_files=merged_files,
            message=message
        )

    def merge_ref(self, ref: str) -> MergeResult:
        """
        Merge the commit named by ref into the current branch.

        Already up to date if ref is an ancestor of HEAD, a fast-forward if
        HEAD is unborn or an ancestor of ref, otherwise a three-way merge
        that is committed at once when it has no conflicts. A clean merge
        that leaves HEAD's tree unchanged records nothing: its merge state
        is cleared and the result reports up to date.

        Args:
            ref: Branch name, full ref or commit hash to merge in

        Raises:
            UnknownRevision: If ref does not resolve
            NotACommit: If ref names a tree or blob
            UnresolvedConflicts: If a merge is already in progress
            UnstagedLocalChanges: If local edits would be overwritten
        """
        self.repo.assert_not_bare('merge')
        refs = self.repo.refs
        theirs_hash = refs.resolve(ref)
        self.repo.read_commit(theirs_hash)

        if self.in_progress():
            raise UnresolvedConflicts(self.repo.load_index().conflicted_paths())

        ours_hash = refs.head_hash()
        if ours_hash is not None and self.is_ancestor(theirs_hash, ours_hash):
            return MergeResult(ours=ours_hash, theirs=theirs_hash, base=theirs_hash,
                               up_to_date=True, message="Already up to date")

        if self.can_fast_forward(ours_hash, theirs_hash):
            return self.fast_forward(ours_hash, theirs_hash)

        result = self.merge(ours_hash, theirs_hash, label=ref)
        if result.conflicts:
            result.message = "Automatic merge failed; fix conflicts and then commit the result"
            return result

        if result.merged_files == self.repo.trees.commit_toc(ours_hash):
            # Nothing to record; a commit would repeat HEAD's tree
            self.clear_merge_state()
            result.up_to_date = True
            result.message = "Already up to date"
            logger.info("Merge of %s leaves HEAD's tree unchanged", theirs_hash[:7])
            return result

        commit = self.repo.commits.commit()
        result.commit_hash = commit.commit_hash
        result.message = "Merge made by the three-way strategy"
        return result

    def abort_merge(self) -> bool:
        """
        Abort an in-progress merge.

        Resets working tree and index to HEAD, then clears merge state.

        Returns:
            True if a merge was aborted, False if none was in progress
        """
        if not self.in_progress():
            return False
        self.repo.assert_not_bare('merge --abort')

        diff = self.repo.diff
        head_files = diff.head_toc()
        changes = diff.diff_tocs(diff.working_copy_toc(), head_files)
        self.repo.working_copy.apply(changes)

        index = self.repo.load_index()
        index.replace(IndexEntry(path=path, sha1=blob) for path, blob in head_files.items())
        self.repo.save_index(index)

        self.clear_merge_state()
        logger.info("Merge aborted")
        return True
