"""Twig objects: blobs, trees and commits."""

import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Type

from .hash import digest_object


class ObjectKind(Enum):
    """The closed set of object kinds held by the object store."""

    BLOB = 'blob'
    TREE = 'tree'
    COMMIT = 'commit'

    @classmethod
    def parse(cls, name: str) -> 'ObjectKind':
        """Return the kind for a header name, raising ValueError if unknown."""
        return cls(name)


BLOB_MODE = '100644'
TREE_MODE = '040000'


class TwigObject(ABC):
    """Base class for all Twig objects."""

    kind: ObjectKind

    def __init__(self):
        self._hash: Optional[str] = None

    @abstractmethod
    def serialize(self) -> bytes:
        """
        Serialize object to bytes.

        Returns:
            bytes: Serialized object data
        """

    @abstractmethod
    def deserialize(self, data: bytes) -> None:
        """
        Deserialize object from bytes.

        Args:
            data: Serialized object data
        """

    @property
    def type(self) -> str:
        """Object kind name (blob, tree, commit)."""
        return self.kind.value

    def compute_hash(self) -> str:
        """
        Compute and cache object hash.

        Objects are hashed with a header containing the kind and size.
        Format: <kind> <size>\\0<content>

        Returns:
            str: 40-character SHA-1 hash
        """
        if self._hash is None:
            self._hash = digest_object(self.type, self.serialize())
        return self._hash

    @property
    def hash(self) -> str:
        return self.compute_hash()


class Blob(TwigObject):
    """
    Represents file content.

    A blob stores the raw content of a file without any metadata
    like filename or permissions.
    """

    kind = ObjectKind.BLOB

    def __init__(self, data: Optional[bytes] = None):
        super().__init__()
        self.data = data or b''

    def serialize(self) -> bytes:
        return self.data

    def deserialize(self, data: bytes) -> None:
        self.data = data
        self._hash = None

    @classmethod
    def from_file(cls, filepath) -> 'Blob':
        """Create a blob holding the contents of a file."""
        with open(filepath, 'rb') as f:
            return cls(f.read())

    def __repr__(self) -> str:
        return f"Blob(hash={self.hash[:7]}, size={len(self.data)})"


class TreeEntry:
    """
    A single named child of a tree.

    Each entry holds the child's name, its kind (blob or tree) and its
    hash. The mode is derived from the kind.
    """

    def __init__(self, name: str, kind: ObjectKind, obj_hash: str):
        if kind is ObjectKind.COMMIT:
            raise ValueError(f"Tree entry {name} cannot reference a commit")
        self.name = name
        self.kind = kind
        self.hash = obj_hash

    @property
    def mode(self) -> str:
        return TREE_MODE if self.kind is ObjectKind.TREE else BLOB_MODE

    @property
    def is_tree(self) -> bool:
        return self.kind is ObjectKind.TREE

    def __eq__(self, other) -> bool:
        if not isinstance(other, TreeEntry):
            return NotImplemented
        return (self.name, self.kind, self.hash) == (other.name, other.kind, other.hash)

    def __lt__(self, other: 'TreeEntry') -> bool:
        """Sort entries by name for consistent ordering."""
        return self.name < other.name

    def __repr__(self) -> str:
        return f"TreeEntry({self.mode} {self.kind.value} {self.hash[:7]} {self.name})"


class Tree(TwigObject):
    """
    Represents a directory snapshot.

    A tree maps names to blobs (files) and other trees (subdirectories).
    Entries are kept sorted by name so identical content always yields
    an identical hash.
    """

    kind = ObjectKind.TREE

    def __init__(self):
        super().__init__()
        self._entries: Dict[str, TreeEntry] = {}

    @property
    def entries(self) -> List[TreeEntry]:
        return sorted(self._entries.values())

    def add_entry(self, name: str, kind: ObjectKind, obj_hash: str) -> None:
        """
        Add or replace the entry called name.

        Args:
            name: Path component (no slashes)
            kind: ObjectKind.BLOB or ObjectKind.TREE
            obj_hash: Hash of the child object
        """
        if not name or '/' in name or '\0' in name:
            raise ValueError(f"Invalid tree entry name: {name!r}")
        self._entries[name] = TreeEntry(name, kind, obj_hash)
        self._hash = None

    def get(self, name: str) -> Optional[TreeEntry]:
        """Entry named name, or None."""
        return self._entries.get(name)

    def serialize(self) -> bytes:
        """
        Serialize tree entries.

        Format: <mode> <name>\\0<20-byte hash> for each entry, sorted by name.
        """
        result = bytearray()
        for entry in self.entries:
            result.extend(f"{entry.mode} {entry.name}".encode())
            result.extend(b'\0')
            result.extend(bytes.fromhex(entry.hash))
        return bytes(result)

    def deserialize(self, data: bytes) -> None:
        self._entries = {}
        pos = 0

        while pos < len(data):
            space_pos = data.index(b' ', pos)
            mode = data[pos:space_pos].decode()

            null_pos = data.index(b'\0', space_pos)
            name = data[space_pos + 1:null_pos].decode()

            obj_hash = data[null_pos + 1:null_pos + 21].hex()
            kind = ObjectKind.TREE if mode == TREE_MODE else ObjectKind.BLOB
            self._entries[name] = TreeEntry(name, kind, obj_hash)

            pos = null_pos + 21

        self._hash = None

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Tree(entries={len(self._entries)})"


class Commit(TwigObject):
    """
    Represents a commit.

    A commit captures:
    - Snapshot of the project (tree hash)
    - Parent commit(s) for history (0 = root, 1 = normal, 2+ = merge)
    - Author and committer identity with a timestamp
    - Commit message
    """

    kind = ObjectKind.COMMIT

    def __init__(self):
        super().__init__()
        self.tree: str = ''
        self.parents: List[str] = []
        self.author: str = ''
        self.author_time: int = 0
        self.author_timezone: str = '+0000'
        self.committer: str = ''
        self.committer_time: int = 0
        self.committer_timezone: str = '+0000'
        self.message: str = ''

    def serialize(self) -> bytes:
        """
        Serialize commit.

        Format:
        tree <tree-hash>
        parent <parent-hash>  (zero or more)
        author Name <email> <timestamp> <timezone>
        committer Name <email> <timestamp> <timezone>

        <commit message>
        """
        lines = [f'tree {self.tree}']
        lines.extend(f'parent {parent}' for parent in self.parents)
        lines.append(f'author {self.author} {self.author_time} {self.author_timezone}')
        lines.append(f'committer {self.committer} {self.committer_time} {self.committer_timezone}')
        lines.append('')
        lines.append(self.message)
        return '\n'.join(lines).encode()

    def deserialize(self, data: bytes) -> None:
        lines = data.decode().split('\n')
        self.parents = []

        message_start = len(lines)
        for i, line in enumerate(lines):
            if not line:
                message_start = i + 1
                break

            if line.startswith('tree '):
                self.tree = line[5:]
            elif line.startswith('parent '):
                self.parents.append(line[7:])
            elif line.startswith('author '):
                self.author, author_time, self.author_timezone = line[7:].rsplit(' ', 2)
                self.author_time = int(author_time)
            elif line.startswith('committer '):
                self.committer, committer_time, self.committer_timezone = line[10:].rsplit(' ', 2)
                self.committer_time = int(committer_time)

        self.message = '\n'.join(lines[message_start:])
        self._hash = None

    @classmethod
    def create(
        cls,
        tree_hash: str,
        parent_hashes: List[str],
        author: str,
        message: str,
        committer: Optional[str] = None,
        timestamp: Optional[int] = None,
        timezone: str = '+0000'
    ) -> 'Commit':
        """
        Create a new commit.

        Args:
            tree_hash: Hash of tree object
            parent_hashes: Ordered parent commit hashes
            author: Author name and email (e.g., "Name <email>")
            message: Commit message
            committer: Committer identity (defaults to author)
            timestamp: Unix timestamp (defaults to current time)
            timezone: Timezone offset (e.g., "+0000", "-0500")
        """
        commit = cls()
        commit.tree = tree_hash
        commit.parents = list(parent_hashes)
        commit.author = author
        commit.committer = committer or author
        commit.message = message

        if timestamp is None:
            timestamp = int(time.time())

        commit.author_time = timestamp
        commit.committer_time = timestamp
        commit.author_timezone = timezone
        commit.committer_timezone = timezone

        return commit

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    def __repr__(self) -> str:
        parent_info = f", parents={len(self.parents)}" if self.parents else ""
        msg_preview = self.message.split('\n')[0][:50]
        return f"Commit(hash={self.hash[:7]}{parent_info}, msg='{msg_preview}')"


OBJECT_CLASSES: Dict[ObjectKind, Type[TwigObject]] = {
    ObjectKind.BLOB: Blob,
    ObjectKind.TREE: Tree,
    ObjectKind.COMMIT: Commit,
}


def parse_object(kind: ObjectKind, data: bytes) -> TwigObject:
    """Build the object of the given kind from its serialized content."""
    obj = OBJECT_CLASSES[kind]()
    obj.deserialize(data)
    return obj
