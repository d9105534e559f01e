"""Error taxonomy for Twig.

Every failure raised by the core derives from TwigError so that callers
(the command line, tests, embedding code) can catch one type.
"""

from typing import Iterable, List


class TwigError(Exception):
    """Base class for all Twig errors."""


class NotARepository(TwigError):
    """
    Raised when no repository can be found at or above a path.

    Args:
        path: Directory the search started from
    """

    def __init__(self, path):
        super().__init__(f"Not a twig repository: {path}")
        self.path = path


class RepositoryExists(TwigError):
    """
    Raised when initializing over an existing repository.

    Args:
        path: Location of the existing repository
    """

    def __init__(self, path):
        super().__init__(f"Repository already exists at {path}")
        self.path = path


class BareRepositoryViolation(TwigError):
    """
    Raised when a working-copy operation runs on a bare repository.

    Args:
        operation: Name of the refused operation, used in the message
    """

    def __init__(self, operation: str = 'This operation'):
        super().__init__(f"{operation} must be run in a work tree")


class UnknownRevision(TwigError):
    """
    Raised when a name or hash does not resolve to an object.

    Args:
        revision: The name or hash as given by the caller
    """

    def __init__(self, revision):
        super().__init__(f"ambiguous argument {revision}: unknown revision")
        self.revision = revision


class SymbolicRefError(TwigError):
    """
    Raised when symbolic ref indirection is too deep or cyclic.

    Args:
        ref_name: Ref the chase started from
        chain: Every ref name visited, in order
    """

    def __init__(self, ref_name: str, chain: List[str]):
        super().__init__(f"Symbolic ref {ref_name} does not resolve: {' -> '.join(chain)}")
        self.ref_name = ref_name
        self.chain = chain


class NotACommit(TwigError):
    """
    Raised when a resolved object is not a commit.

    Args:
        revision: The name or hash that was resolved
        kind: Kind of the object actually found, if known
    """

    def __init__(self, revision, kind=None):
        detail = f" (found {kind})" if kind else ""
        super().__init__(f"Reference is not a commit: {revision}{detail}")
        self.revision = revision


class NoMatchingFiles(TwigError):
    """
    Raised when a path spec matches no files.

    Args:
        path: The path as given by the caller
    """

    def __init__(self, path):
        super().__init__(f"{path} did not match any files")
        self.path = path


class RecursiveRemovalRequired(TwigError):
    """
    Raised when removing a directory without the recursive flag.

    Args:
        path: The directory that was named
    """

    def __init__(self, path):
        super().__init__(f"Not removing {path} recursively without -r")
        self.path = path


class UnstagedLocalChanges(TwigError):
    """
    Raised when an operation would discard local modifications.

    Args:
        paths: Paths whose working-copy content would be lost

    Attributes:
        paths: The same paths, sorted
    """

    def __init__(self, paths: Iterable[str]):
        self.paths = sorted(paths)
        listing = '\n'.join(self.paths)
        super().__init__(f"Local changes would be lost:\n{listing}")


class NothingToCommit(TwigError):
    """
    Raised when the index tree matches HEAD's tree.

    Args:
        head_desc: Branch name or "detached HEAD", shown as the first line
    """

    def __init__(self, head_desc: str = ''):
        prefix = f"On {head_desc}\n" if head_desc else ""
        super().__init__(f"{prefix}Nothing to commit, working directory clean")


class UnresolvedConflicts(TwigError):
    """
    Raised when unmerged index entries block an operation.

    Args:
        paths: Paths that still have stage 1/2/3 entries

    Attributes:
        paths: The same paths, sorted
    """

    def __init__(self, paths: Iterable[str]):
        self.paths = sorted(paths)
        listing = '\n'.join(f"U {path}" for path in self.paths)
        super().__init__(f"{listing}\nCannot proceed because you have unmerged files.")


class ObjectNotFound(TwigError):
    """
    Raised when an object hash is absent from the store.

    Args:
        obj_hash: The missing object's hash
    """

    def __init__(self, obj_hash: str):
        super().__init__(f"Object {obj_hash} not found")
        self.hash = obj_hash


class CorruptObject(TwigError):
    """Raised when a stored object has an invalid header or size."""
