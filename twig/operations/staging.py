"""Staging operations: add and rm."""

import logging
from pathlib import Path
from typing import List

from twig.core.errors import NoMatchingFiles, RecursiveRemovalRequired, UnstagedLocalChanges
from twig.core.objects import ObjectKind
from twig.utils.fs import list_files, prune_empty_dirs

logger = logging.getLogger(__name__)


class StagingManager:
    """Moves working-copy paths in and out of the index."""

    def __init__(self, repo):
        """
        Args:
            repo: Repository instance
        """
        self.repo = repo

    def _full_path(self, path) -> Path:
        path = Path(path)
        if path.is_absolute():
            return path.resolve()
        return (self.repo.work_tree / path).resolve()

    def _relative(self, full_path: Path) -> str:
        try:
            rel = full_path.relative_to(self.repo.work_tree).as_posix()
        except ValueError:
            raise NoMatchingFiles(full_path)
        return '' if rel == '.' else rel

    def add(self, path) -> List[str]:
        """
        Stage every file at or under path.

        Each file is stored as a blob and its stage-0 entry is replaced,
        which also resolves a conflicted path.

        Args:
            path: File or directory, relative to the work tree or absolute

        Returns:
            Staged paths, relative to the work tree

        Raises:
            NoMatchingFiles: If no file exists at or under path
        """
        self.repo.assert_not_bare('add')
        full_path = self._full_path(path)
        self._relative(full_path)

        files = list_files(self.repo.work_tree, full_path, self.repo.twig_dir)
        if not files:
            raise NoMatchingFiles(path)

        index = self.repo.load_index()
        for rel_path in files:
            file_path = self.repo.work_tree / rel_path
            blob_hash = self.repo.put(file_path.read_bytes(), ObjectKind.BLOB)
            stat = file_path.stat()
            index.stage(rel_path, blob_hash, size=stat.st_size, mtime=int(stat.st_mtime))
        self.repo.save_index(index)

        logger.debug("Staged %d file(s) under %s", len(files), path)
        return files

    def rm(self, path, recursive: bool = False) -> List[str]:
        """
        Remove tracked files at or under path from the index and disk.

        Raises:
            NoMatchingFiles: If no index path matches
            RecursiveRemovalRequired: If path is a directory and recursive is False
            UnstagedLocalChanges: If a target's working copy differs from HEAD
        """
        self.repo.assert_not_bare('rm')
        full_path = self._full_path(path)
        rel_path = self._relative(full_path)

        index = self.repo.load_index()
        targets = index.matching_files(rel_path)
        if not targets:
            raise NoMatchingFiles(path)

        if full_path.is_dir() and not recursive:
            raise RecursiveRemovalRequired(path)

        changed = set(self.repo.diff.added_or_modified_files()) & set(targets)
        if changed:
            raise UnstagedLocalChanges(changed)

        work_tree = self.repo.work_tree
        for target in targets:
            file_path = work_tree / target
            if file_path.is_file():
                file_path.unlink()
                prune_empty_dirs(work_tree, file_path)
            index.unstage(target)
        self.repo.save_index(index)

        logger.debug("Removed %d file(s) under %s", len(targets), path)
        return targets
