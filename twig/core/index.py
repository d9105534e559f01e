"""Index (staging area) implementation."""

import hashlib
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from twig.utils.fs import atomic_write_bytes

SIGNATURE = b'DIRC'
INDEX_VERSION = 2

# mtime, mode, size, sha1, flags
ENTRY_FORMAT = '>III20sH'
ENTRY_SIZE = struct.calcsize(ENTRY_FORMAT)

STAGE_NORMAL = 0
STAGE_BASE = 1
STAGE_OURS = 2
STAGE_THEIRS = 3
CONFLICT_STAGES = (STAGE_BASE, STAGE_OURS, STAGE_THEIRS)

DEFAULT_MODE = 0o100644
NAME_MASK = 0xFFF
STAGE_SHIFT = 12


@dataclass
class IndexEntry:
    """
    A single entry in the index.

    Stage 0 is the normal staged content of a path. Stages 1, 2 and 3
    hold the base, ours and theirs versions of a path left unresolved by
    a merge.
    """
    path: str
    sha1: str
    stage: int = STAGE_NORMAL
    mode: int = DEFAULT_MODE
    size: int = 0
    mtime: int = 0

    @property
    def key(self) -> Tuple[str, int]:
        return self.path, self.stage

    @property
    def flags(self) -> int:
        return (self.stage << STAGE_SHIFT) | min(len(self.path.encode()), NAME_MASK)

    def __repr__(self) -> str:
        return f"IndexEntry({self.mode:o} {self.sha1[:7]} {self.stage} {self.path})"


class Index:
    """
    Twig index (staging area) implementation.

    The index holds the intended content of the next commit as a mapping
    of (path, stage) to entry. Conflict stages only exist while a merge
    is unresolved.
    """

    def __init__(self):
        self.entries: Dict[Tuple[str, int], IndexEntry] = {}
        self.version: int = INDEX_VERSION

    def stage(
        self,
        path: str,
        sha1: str,
        mode: int = DEFAULT_MODE,
        size: int = 0,
        mtime: int = 0
    ) -> IndexEntry:
        """
        Upsert the stage-0 entry for path.

        Staging a path also drops its conflict stages, which is how a
        conflict is marked resolved.

        Args:
            path: Slash-separated path relative to the repository root
            sha1: Blob hash of the content
            mode: File mode
            size: File size in bytes
            mtime: Modification time (seconds)
        """
        for stage in CONFLICT_STAGES:
            self.entries.pop((path, stage), None)

        entry = IndexEntry(path=path, sha1=sha1, stage=STAGE_NORMAL, mode=mode, size=size, mtime=mtime)
        self.entries[entry.key] = entry
        return entry

    def unstage(self, path: str) -> bool:
        """
        Remove every entry (all stages) of path.

        Returns:
            True if anything was removed
        """
        keys = [key for key in self.entries if key[0] == path]
        for key in keys:
            del self.entries[key]
        return bool(keys)

    def add_conflict(self, conflict) -> None:
        """
        Record a merge conflict as stage 1/2/3 entries.

        Args:
            conflict: Object exposing ``path`` and ``index_stages()``
                returning (stage, blob hash) pairs
        """
        self.unstage(conflict.path)
        for stage, sha1 in conflict.index_stages():
            entry = IndexEntry(path=conflict.path, sha1=sha1, stage=stage)
            self.entries[entry.key] = entry

    def get_entry(self, path: str, stage: int = STAGE_NORMAL) -> Optional[IndexEntry]:
        """Look up the entry for path at stage, or None."""
        return self.entries.get((path, stage))

    def conflicted_paths(self) -> List[str]:
        """Sorted paths that have a stage > 0 entry."""
        return sorted({path for path, stage in self.entries if stage != STAGE_NORMAL})

    def has_conflicts(self) -> bool:
        """Whether any path still has stage 1/2/3 entries."""
        return any(stage != STAGE_NORMAL for _, stage in self.entries)

    def toc(self) -> Dict[str, str]:
        """Mapping of path to blob hash for stage-0 entries."""
        return {path: entry.sha1 for (path, stage), entry in self.entries.items() if stage == STAGE_NORMAL}

    def paths(self) -> List[str]:
        """Sorted distinct paths of all entries, any stage."""
        return sorted({path for path, _ in self.entries})

    def matching_files(self, path_spec: str) -> List[str]:
        """Index paths equal to path_spec or inside the directory path_spec."""
        spec = path_spec.strip('/')
        if spec in ('', '.'):
            return self.paths()
        return [p for p in self.paths() if p == spec or p.startswith(spec + '/')]

    def replace(self, entries: Iterable[IndexEntry]) -> None:
        """Discard every entry and load entries in their place."""
        self.entries = {entry.key: entry for entry in entries}

    def clear(self) -> None:
        self.entries.clear()

    def write(self, index_path) -> None:
        """
        Write index to disk.

        Format:
        - Header: 'DIRC' + version (4 bytes) + entry count (4 bytes)
        - Entries sorted by (path, stage): mtime, mode, size, sha1, flags,
          then the NUL-terminated path padded to 8-byte alignment. The
          stage lives in bits 12-13 of flags.
        - Checksum: SHA-1 of everything before it
        """
        content = bytearray()
        content.extend(SIGNATURE)
        content.extend(struct.pack('>I', self.version))
        content.extend(struct.pack('>I', len(self.entries)))

        for key in sorted(self.entries):
            entry = self.entries[key]
            entry_data = struct.pack(
                ENTRY_FORMAT,
                entry.mtime,
                entry.mode,
                entry.size,
                bytes.fromhex(entry.sha1),
                entry.flags
            )
            path_bytes = entry.path.encode()

            content.extend(entry_data)
            content.extend(path_bytes)
            content.extend(b'\x00')

            entry_len = len(entry_data) + len(path_bytes) + 1
            padlen = (8 - (entry_len % 8)) % 8
            content.extend(b'\x00' * padlen)

        content.extend(hashlib.sha1(content).digest())
        atomic_write_bytes(Path(index_path), bytes(content))

    def read(self, index_path) -> None:
        """
        Read index from disk. A missing file is an empty index.

        Raises:
            ValueError: On a bad signature or checksum
        """
        self.entries.clear()
        index_path = Path(index_path)
        if not index_path.exists():
            return

        data = index_path.read_bytes()
        content, checksum = data[:-20], data[-20:]
        if hashlib.sha1(content).digest() != checksum:
            raise ValueError("Index checksum mismatch")

        if content[0:4] != SIGNATURE:
            raise ValueError(f"Invalid index signature: {content[0:4]!r}")

        self.version = struct.unpack('>I', content[4:8])[0]
        entry_count = struct.unpack('>I', content[8:12])[0]

        offset = 12
        for _ in range(entry_count):
            mtime, mode, size, sha1, flags = struct.unpack(ENTRY_FORMAT, content[offset:offset + ENTRY_SIZE])
            offset += ENTRY_SIZE

            path_end = content.index(b'\x00', offset)
            path = content[offset:path_end].decode()
            offset = path_end + 1

            entry_len = ENTRY_SIZE + len(path.encode()) + 1
            offset += (8 - (entry_len % 8)) % 8

            entry = IndexEntry(
                path=path,
                sha1=sha1.hex(),
                stage=(flags >> STAGE_SHIFT) & 0x3,
                mode=mode,
                size=size,
                mtime=mtime
            )
            self.entries[entry.key] = entry

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"Index(entries={len(self.entries)})"
