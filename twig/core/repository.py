"""Repository handle and object store for Twig."""

import logging
import zlib
from pathlib import Path
from typing import Optional

from .errors import BareRepositoryViolation, CorruptObject, NotACommit, NotARepository, ObjectNotFound, RepositoryExists
from .hash import frame_object, hash_object, is_object_hash
from .objects import Commit, ObjectKind, Tree, TwigObject, parse_object
from twig.utils.fs import atomic_write_bytes, atomic_write_text

logger = logging.getLogger(__name__)

REPO_DIR_NAME = '.twig'
DEFAULT_BRANCH = 'main'


class Repository:
    """
    Represents a Twig repository.

    The repository is the explicit context handed to every component: it
    knows where the repository files live, owns the content-addressed
    object store, and lazily creates the managers that operate on it.

    A normal repository keeps its files in ``<work_tree>/.twig``; a bare
    repository keeps them directly in ``<path>`` and has no working copy.
    """

    def __init__(self, path='.', bare: bool = False):
        """
        Args:
            path: Repository root (work tree, or the repository itself if bare)
            bare: Whether the repository has no working copy
        """
        self.work_tree = Path(path).resolve()
        self.bare = bare
        self.twig_dir = self.work_tree if bare else self.work_tree / REPO_DIR_NAME
        self.objects_dir = self.twig_dir / 'objects'
        self.refs_dir = self.twig_dir / 'refs'
        self.heads_dir = self.refs_dir / 'heads'
        self.head_file = self.twig_dir / 'HEAD'
        self.index_file = self.twig_dir / 'index'
        self.config_file = self.twig_dir / 'config'
        self.merge_head_file = self.twig_dir / 'MERGE_HEAD'
        self.merge_msg_file = self.twig_dir / 'MERGE_MSG'

        # Managers are created on first use to avoid circular imports
        self._ref_manager = None
        self._tree_builder = None
        self._diff_engine = None
        self._merge_engine = None
        self._working_copy = None
        self._commit_builder = None
        self._staging_manager = None
        self._config = None

    @property
    def refs(self):
        """Get RefManager instance."""
        if self._ref_manager is None:
            from .refs import RefManager
            self._ref_manager = RefManager(self)
        return self._ref_manager

    @property
    def trees(self):
        """Get TreeBuilder instance."""
        if self._tree_builder is None:
            from .tree_builder import TreeBuilder
            self._tree_builder = TreeBuilder(self)
        return self._tree_builder

    @property
    def diff(self):
        """Get DiffEngine instance."""
        if self._diff_engine is None:
            from twig.operations.diff import DiffEngine
            self._diff_engine = DiffEngine(self)
        return self._diff_engine

    @property
    def merge(self):
        """Get MergeEngine instance."""
        if self._merge_engine is None:
            from twig.operations.merge import MergeEngine
            self._merge_engine = MergeEngine(self)
        return self._merge_engine

    @property
    def working_copy(self):
        """Get WorkingCopy instance."""
        if self._working_copy is None:
            from twig.operations.checkout import WorkingCopy
            self._working_copy = WorkingCopy(self)
        return self._working_copy

    @property
    def commits(self):
        """Get CommitBuilder instance."""
        if self._commit_builder is None:
            from twig.operations.commit import CommitBuilder
            self._commit_builder = CommitBuilder(self)
        return self._commit_builder

    @property
    def staging(self):
        """Get StagingManager instance."""
        if self._staging_manager is None:
            from twig.operations.staging import StagingManager
            self._staging_manager = StagingManager(self)
        return self._staging_manager

    @property
    def config(self):
        """Get Config instance for this repository."""
        if self._config is None:
            from .config import Config
            self._config = Config(self.config_file)
        return self._config

    def init(self) -> 'Repository':
        """
        Initialize a new repository.

        Creates the repository structure:
        objects/       # Object database
        refs/heads/    # Branch references
        HEAD           # Symbolic ref to the (unborn) main branch
        config         # Repository configuration, including core.bare

        Returns:
            Repository: self for method chaining

        Raises:
            RepositoryExists: If a repository already exists here
        """
        if self.head_file.exists() or (not self.bare and self.twig_dir.exists()):
            raise RepositoryExists(self.twig_dir)

        self.objects_dir.mkdir(parents=True, exist_ok=True)
        self.heads_dir.mkdir(parents=True, exist_ok=True)
        atomic_write_text(self.head_file, f'ref: refs/heads/{DEFAULT_BRANCH}\n')
        self.config.set('core', 'repositoryformatversion', '0')
        self.config.set('core', 'bare', 'true' if self.bare else 'false')

        logger.info("Initialized %srepository in %s", 'bare ' if self.bare else '', self.twig_dir)
        return self

    @classmethod
    def find_repository(cls, path='.') -> Optional['Repository']:
        """
        Find repository by searching up the directory tree.

        A directory containing ``.twig`` is a normal repository; a directory
        holding HEAD, objects/ and a config marked bare is a bare one.

        Returns:
            Repository if found, None otherwise
        """
        current = Path(path).resolve()

        while True:
            if (current / REPO_DIR_NAME).is_dir():
                return cls(current)

            if cls._is_bare_layout(current):
                return cls(current, bare=True)

            if current == current.parent:
                return None

            current = current.parent

    @classmethod
    def open(cls, path='.') -> 'Repository':
        """Like find_repository but raises NotARepository when none is found."""
        repo = cls.find_repository(path)
        if repo is None:
            raise NotARepository(Path(path).resolve())
        return repo

    @staticmethod
    def _is_bare_layout(path: Path) -> bool:
        if not ((path / 'HEAD').is_file() and (path / 'objects').is_dir()):
            return False
        from .config import Config
        return Config(path / 'config').is_bare()

    @property
    def is_bare(self) -> bool:
        return self.bare or self.config.is_bare()

    def assert_not_bare(self, operation: str = 'This operation') -> None:
        """Raise BareRepositoryViolation if there is no working copy."""
        if self.is_bare:
            raise BareRepositoryViolation(operation)

    def object_path(self, obj_hash: str) -> Path:
        """
        Get filesystem path for an object.

        Objects are sharded by the first 2 characters of the hash, with
        the remaining 38 characters as the filename.
        """
        return self.objects_dir / obj_hash[:2] / obj_hash[2:]

    def put(self, content: bytes, kind: ObjectKind) -> str:
        """
        Store content of the given kind and return its hash.

        Writing identical (kind, content) twice stores one object. The
        object is written to a temporary file and renamed into place, so
        readers never see a partial object.
        """
        framed = frame_object(kind.value, content)
        obj_hash = hash_object(framed)
        path = self.object_path(obj_hash)

        if path.exists():
            return obj_hash

        atomic_write_bytes(path, zlib.compress(framed))
        logger.debug("Wrote %s %s (%d bytes)", kind.value, obj_hash, len(content))
        return obj_hash

    def write_object(self, obj: TwigObject) -> str:
        """Store a Twig object and return its hash."""
        return self.put(obj.serialize(), obj.kind)

    def _read_raw(self, obj_hash: str):
        if not is_object_hash(obj_hash):
            raise ObjectNotFound(obj_hash)
        path = self.object_path(obj_hash)
        if not path.exists():
            raise ObjectNotFound(obj_hash)

        try:
            content = zlib.decompress(path.read_bytes())
        except zlib.error as e:
            raise CorruptObject(f"Object {obj_hash} is not readable: {e}") from e

        null_idx = content.find(b'\0')
        if null_idx < 0:
            raise CorruptObject(f"Object {obj_hash} has no header")
        header = content[:null_idx].decode(errors='replace')
        data = content[null_idx + 1:]

        try:
            kind_name, size_str = header.split(' ', 1)
            kind = ObjectKind.parse(kind_name)
            size = int(size_str)
        except ValueError:
            raise CorruptObject(f"Invalid object header: {header}")

        if len(data) != size:
            raise CorruptObject(f"Object size mismatch: expected {size}, got {len(data)}")

        return kind, data

    def get(self, obj_hash: str) -> bytes:
        """Return the stored content of an object, without its header."""
        return self._read_raw(obj_hash)[1]

    def read_object(self, obj_hash: str, expected: Optional[ObjectKind] = None) -> TwigObject:
        """
        Read and deserialize an object.

        Args:
            obj_hash: 40-character SHA-1 hash
            expected: Kind the caller requires, if any

        Raises:
            ObjectNotFound: If the object is absent
            NotACommit: If a commit was expected and something else was found
            CorruptObject: If the object is unreadable or of the wrong kind
        """
        kind, data = self._read_raw(obj_hash)
        if expected is not None and kind is not expected:
            if expected is ObjectKind.COMMIT:
                raise NotACommit(obj_hash, kind.value)
            raise CorruptObject(f"Object {obj_hash} is a {kind.value}, not a {expected.value}")
        return parse_object(kind, data)

    def read_commit(self, obj_hash: str) -> Commit:
        """Read a commit, raising NotACommit for any other kind."""
        return self.read_object(obj_hash, ObjectKind.COMMIT)

    def read_tree_object(self, obj_hash: str) -> Tree:
        """Read a tree object."""
        return self.read_object(obj_hash, ObjectKind.TREE)

    def exists(self, obj_hash: str) -> bool:
        """Whether an object with this hash is stored."""
        return is_object_hash(obj_hash) and self.object_path(obj_hash).exists()

    def kind_of(self, obj_hash: str) -> ObjectKind:
        """Kind of a stored object; ObjectNotFound if absent."""
        return self._read_raw(obj_hash)[0]

    def load_index(self):
        """Read the index from disk (empty if it was never written)."""
        from .index import Index
        index = Index()
        index.read(self.index_file)
        return index

    def save_index(self, index) -> None:
        """Write index to the repository index file atomically."""
        index.write(self.index_file)

    def __repr__(self) -> str:
        return f"Repository(path={self.work_tree}{', bare' if self.bare else ''})"
