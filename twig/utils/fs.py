"""Filesystem helpers shared by the object store, refs and working copy."""

import os
import tempfile
from pathlib import Path
from typing import List


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """
    Write data to path so readers see either the old or the new content.

    The bytes go to a temporary file in the destination directory, are
    flushed to disk, and the file is renamed over the destination.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix='.tmp_')
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def atomic_write_text(path: Path, text: str) -> None:
    """Text counterpart of atomic_write_bytes, encoded as UTF-8."""
    atomic_write_bytes(path, text.encode())


def list_files(root: Path, start: Path, skip: Path) -> List[str]:
    """
    List files at or under start as slash-separated paths relative to root.

    Anything inside skip (the repository directory) is left out.
    """
    start = Path(start)
    skip = Path(skip)
    if start == skip or skip in start.parents:
        return []
    if start.is_file():
        return [start.relative_to(root).as_posix()]
    if not start.is_dir():
        return []

    found = []
    for dirpath, dirnames, filenames in os.walk(start):
        current = Path(dirpath)
        dirnames[:] = sorted(d for d in dirnames if current / d != skip)
        for name in sorted(filenames):
            found.append((current / name).relative_to(root).as_posix())
    return found


def prune_empty_dirs(root: Path, path: Path) -> None:
    """Remove empty parent directories of path, stopping at root."""
    root = Path(root)
    current = Path(path).parent
    while current != root and root in current.parents:
        try:
            current.rmdir()
        except OSError:
            return
        current = current.parent
