"""Reference management for Twig."""

import logging
from pathlib import Path
from typing import List, NamedTuple, Optional, Tuple

from .errors import ObjectNotFound, SymbolicRefError, UnknownRevision
from .hash import is_object_hash
from twig.utils.fs import atomic_write_text

logger = logging.getLogger(__name__)

HEAD = 'HEAD'
MERGE_HEAD = 'MERGE_HEAD'
SPECIAL_REFS = (HEAD, MERGE_HEAD)
HEADS_PREFIX = 'refs/heads/'
SYMBOLIC_PREFIX = 'ref: '

# HEAD -> refs/heads/<branch> is the only indirection a repository holds
MAX_SYMBOLIC_HOPS = 1


class RefValue(NamedTuple):
    """Content of a ref file: a commit hash, or the name of another ref."""
    symbolic: bool
    value: str


def is_valid_ref_name(name: str) -> bool:
    """Whether name can be stored as a ref file inside the repository."""
    if not name or name.startswith('/') or name.endswith('/'):
        return False
    if '..' in name or '//' in name or name.endswith('.lock'):
        return False
    return not any(c.isspace() or c in '\0~^:?*[\\' for c in name)


class RefManager:
    """
    Manages references (branches, HEAD, MERGE_HEAD).

    Handles:
    - Symbolic references (HEAD attached to a branch)
    - Direct references (detached HEAD, branch tips, MERGE_HEAD)
    - Resolution of names and literal hashes to commit hashes
    - Parent selection for the next commit
    """

    def __init__(self, repo):
        """
        Args:
            repo: Repository instance
        """
        self.repo = repo
        self.twig_dir = repo.twig_dir
        self.heads_dir = repo.heads_dir
        self.head_file = repo.head_file

    def to_local_ref(self, name: str) -> str:
        """Expand a branch name to its full ref name; special and full names pass through."""
        if name in SPECIAL_REFS or name.startswith('refs/'):
            return name
        return HEADS_PREFIX + name

    def ref_path(self, name: str) -> Path:
        """
        File backing a ref.

        Args:
            name: Branch name, full ref name or special ref

        Raises:
            ValueError: If the expanded name is not a valid ref name
        """
        full_name = self.to_local_ref(name)
        if not is_valid_ref_name(full_name):
            raise ValueError(f"Invalid ref name: {name!r}")
        return self.twig_dir / full_name

    def read_raw(self, name: str) -> Optional[RefValue]:
        """
        Read a ref file without following it.

        Returns:
            RefValue, or None if the ref does not exist
        """
        if not is_valid_ref_name(self.to_local_ref(name)):
            return None
        path = self.ref_path(name)
        if not path.is_file():
            return None

        content = path.read_text().strip()
        if not content:
            return None
        if content.startswith(SYMBOLIC_PREFIX):
            return RefValue(symbolic=True, value=content[len(SYMBOLIC_PREFIX):].strip())
        return RefValue(symbolic=False, value=content)

    def _chase(self, name: str) -> Tuple[str, Optional[RefValue]]:
        """
        Follow symbolic refs from name.

        Returns:
            (terminal ref name, its direct value or None if the terminal ref
            does not exist yet)

        Raises:
            SymbolicRefError: On a cycle or more than MAX_SYMBOLIC_HOPS hops
        """
        current = self.to_local_ref(name)
        chain = [current]

        while True:
            value = self.read_raw(current)
            if value is None or not value.symbolic:
                return current, value

            target = self.to_local_ref(value.value)
            chain.append(target)
            if len(chain) - 1 > MAX_SYMBOLIC_HOPS or target in chain[:-1]:
                raise SymbolicRefError(name, chain)
            current = target

    def terminal_ref(self, name: str) -> str:
        """Name of the ref that name ultimately points at (HEAD -> refs/heads/main)."""
        return self._chase(name)[0]

    def try_resolve(self, name: Optional[str]) -> Optional[str]:
        """
        Resolve a name or literal hash to a hash, or None.

        Accepts a full object hash present in the store, HEAD, MERGE_HEAD,
        a branch name, or a full ref name.
        """
        if not name:
            return None
        if is_object_hash(name) and self.repo.exists(name):
            return name
        if not is_valid_ref_name(self.to_local_ref(name)):
            return None

        _, value = self._chase(name)
        return value.value if value else None

    def resolve(self, name: str) -> str:
        """
        Resolve a name or literal hash to a hash.

        Raises:
            UnknownRevision: If nothing matches (including an unborn HEAD)
        """
        obj_hash = self.try_resolve(name)
        if obj_hash is None:
            raise UnknownRevision(name)
        return obj_hash

    def write(self, ref: str, target: str, symbolic: bool = False) -> None:
        """
        Point ref at target.

        Args:
            ref: Ref to write (HEAD, MERGE_HEAD, branch or full ref name)
            target: Commit hash, or a ref name if symbolic
            symbolic: Write a symbolic ref instead of a direct hash

        Raises:
            ObjectNotFound: If a direct target is not in the object store
        """
        path = self.ref_path(ref)

        if symbolic:
            target_name = self.to_local_ref(target)
            if not is_valid_ref_name(target_name):
                raise ValueError(f"Invalid ref name: {target!r}")
            content = f'{SYMBOLIC_PREFIX}{target_name}\n'
        else:
            if not self.repo.exists(target):
                raise ObjectNotFound(target)
            content = target + '\n'

        atomic_write_text(path, content)
        logger.debug("Ref %s -> %s", self.to_local_ref(ref), content.strip())

    def update_ref(self, ref: str, commit_hash: str) -> str:
        """
        Move the ref that ref ultimately names to commit_hash.

        With HEAD attached to main, this advances refs/heads/main; with
        HEAD detached, it rewrites HEAD itself.

        Returns:
            Name of the ref that was written
        """
        terminal = self.terminal_ref(ref)
        self.write(terminal, commit_hash)
        return terminal

    def delete(self, ref: str) -> bool:
        """Delete a ref file. Returns False if it did not exist."""
        path = self.ref_path(ref)
        if path.is_file():
            path.unlink()
            logger.debug("Deleted ref %s", self.to_local_ref(ref))
            return True
        return False

    def head_hash(self) -> Optional[str]:
        """Commit HEAD points at, or None if the current branch is unborn."""
        return self.try_resolve(HEAD)

    def merge_head(self) -> Optional[str]:
        """Commit being merged in, or None outside a merge."""
        return self.try_resolve(MERGE_HEAD)

    def is_detached(self) -> bool:
        """Whether HEAD holds a raw commit hash."""
        value = self.read_raw(HEAD)
        return value is not None and not value.symbolic

    def current_branch(self) -> Optional[str]:
        """Name of the branch HEAD is attached to, or None if detached."""
        value = self.read_raw(HEAD)
        if value is not None and value.symbolic and value.value.startswith(HEADS_PREFIX):
            return value.value[len(HEADS_PREFIX):]
        return None

    def head_description(self) -> str:
        """Current branch name, or "detached HEAD"."""
        return self.current_branch() or 'detached HEAD'

    def parent_hashes_for_next_commit(self) -> List[str]:
        """
        Parents for a commit made now.

        [HEAD] normally, [HEAD, MERGE_HEAD] while a merge is pending,
        [] if HEAD is unborn.
        """
        head = self.head_hash()
        if head is None:
            return []
        merge_head = self.merge_head()
        if merge_head is not None:
            return [head, merge_head]
        return [head]

    def is_branch(self, name: str) -> bool:
        """Whether name is a short branch name with a direct ref file."""
        if name in SPECIAL_REFS or name.startswith('refs/'):
            return False
        value = self.read_raw(name)
        return value is not None and not value.symbolic

    def create_branch(self, name: str, commit_hash: str) -> bool:
        """
        Create a new branch.

        Returns:
            True if created, False if it already exists
        """
        if name in SPECIAL_REFS or name.startswith('refs/'):
            raise ValueError(f"Invalid branch name: {name!r}")
        if self.ref_path(name).exists():
            return False
        self.write(name, commit_hash)
        return True

    def delete_branch(self, name: str) -> bool:
        """
        Delete a branch.

        Args:
            name: Short branch name

        Returns:
            True if deleted, False if not found or currently checked out

        Raises:
            ValueError: If name is not a valid branch name
        """
        if name in SPECIAL_REFS or name.startswith('refs/'):
            raise ValueError(f"Invalid branch name: {name!r}")
        if self.current_branch() == name:
            return False
        return self.delete(name)

    def list_branches(self) -> List[Tuple[str, str]]:
        """List (branch_name, commit_hash) tuples sorted by name."""
        if not self.heads_dir.exists():
            return []

        branches = []
        for branch_file in self.heads_dir.rglob('*'):
            if branch_file.is_file() and not branch_file.name.startswith('.'):
                name = branch_file.relative_to(self.heads_dir).as_posix()
                branches.append((name, branch_file.read_text().strip()))

        return sorted(branches, key=lambda x: x[0])
