"""Tree objects and the recursive tree builder.

A tree is a text object made of ordered lines::

    blob <fingerprint> <path>
    tree <fingerprint> <path>

The same line format is used by the staging index, so :class:`TreeEntry`
is shared by both.
"""

import logging
import os
from pathlib import Path
from typing import List, NamedTuple, Optional, Set, Tuple

from tinyvcs.constants import HIDDEN_PREFIX, KIND_BLOB, KIND_TREE, OBJECT_KINDS
from tinyvcs.errors import (
    AccessDeniedError,
    CycleDetectedError,
    InvalidObjectError,
    IOFailureError,
    NotFoundError,
)
from tinyvcs.storage.fingerprint import fingerprint, is_fingerprint
from tinyvcs.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

DirIdentity = Tuple[int, int]


class TreeEntry(NamedTuple):
    """One ``<kind> <fingerprint> <path>`` line."""

    kind: str
    fingerprint: str
    path: str

    def to_line(self) -> str:
        return f"{self.kind} {self.fingerprint} {check_path(self.path)}\n"

    @classmethod
    def from_line(cls, line: str) -> "TreeEntry":
        """Parse a single line (with or without its trailing newline).

        Raises:
            InvalidObjectError: If the line is not a valid entry
        """
        parts = line.rstrip("\n").split(" ", 2)
        if len(parts) != 3:
            raise InvalidObjectError(f"Malformed tree entry: {line!r}")
        kind, object_id, path = parts
        if kind not in OBJECT_KINDS or not is_fingerprint(object_id) or not path:
            raise InvalidObjectError(f"Malformed tree entry: {line!r}")
        return cls(kind, object_id, path)


class TreeResult(NamedTuple):
    """A built tree: its fingerprint, serialized bytes and nested entries.

    ``children`` pairs each entry with the TreeResult of that entry when it
    is a directory (None for blobs), so callers can walk every descendant
    without touching the filesystem again.
    """

    fingerprint: str
    data: bytes
    children: List[Tuple[TreeEntry, Optional["TreeResult"]]]

    @property
    def entries(self) -> List[TreeEntry]:
        return [entry for entry, _ in self.children]

    def walk(self):
        """Yield every descendant entry in pre-order."""
        for entry, subtree in self.children:
            yield entry
            if subtree is not None:
                yield from subtree.walk()


def serialize_tree(entries: List[TreeEntry]) -> bytes:
    """Serialize entries into tree object bytes."""
    return "".join(entry.to_line() for entry in entries).encode("utf-8")


def parse_tree(data: bytes) -> List[TreeEntry]:
    """Parse tree object bytes (or index text) into entries.

    Raises:
        InvalidObjectError: If any non-empty line is malformed
    """
    text = data.decode("utf-8") if isinstance(data, bytes) else data
    # Only "\n" ends an entry; names may hold "\r" or other line breaks
    return [TreeEntry.from_line(line) for line in text.split("\n") if line]


def check_path(path: str) -> str:
    """Return ``path`` if a tree or index line can hold it.

    Raises:
        InvalidObjectError: If the path contains a newline or cannot be
            encoded as UTF-8 (undecodable filesystem names)
    """
    if "\n" in path:
        raise InvalidObjectError(f"Path contains a newline: {path!r}")
    try:
        path.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidObjectError(f"Path is not valid UTF-8: {path!r}") from e
    return path


def is_hidden(path: Path) -> bool:
    """Dotfiles and dot-directories are never versioned."""
    return path.name.startswith(HIDDEN_PREFIX)


def directory_identity(directory: Path) -> DirIdentity:
    """Canonical identity of a directory, following symlinks."""
    st = directory.stat()
    return (st.st_dev, st.st_ino)


class TreeBuilder:
    """Recursively serializes directories into tree objects.

    Every blob and subtree is written to the object store before the line
    referencing it is emitted, so a stored tree never points at a missing
    object.

    Attributes:
        work_root: Working directory that recorded paths are relative to
        object_store: Store receiving blobs and trees
    """

    def __init__(self, work_root: Path, object_store: ObjectStore):
        self.work_root = Path(work_root)
        self.object_store = object_store

    def build(self, directory: Path, visited: Set[DirIdentity]) -> TreeResult:
        """Build, store and return the tree for ``directory``.

        Args:
            directory: Directory to serialize
            visited: Identities of directories already entered during the
                current staging call; updated in place

        Raises:
            CycleDetectedError: If ``directory`` is already in ``visited``
            AccessDeniedError: If a child cannot be read
            IOFailureError: If reading a child fails
            InvalidObjectError: If a child name cannot be recorded; raised
                before anything in ``directory`` is stored
        """
        directory = Path(directory)
        try:
            identity = directory_identity(directory)
        except FileNotFoundError as e:
            raise NotFoundError(f"Directory not found: {directory}") from e
        if identity in visited:
            raise CycleDetectedError(f"Directory cycle detected at {directory}")
        visited.add(identity)

        try:
            names = sorted(os.listdir(directory))
        except PermissionError as e:
            raise AccessDeniedError(f"Cannot read directory {directory}") from e
        except OSError as e:
            raise IOFailureError(f"Failed to list {directory}: {e}") from e

        names = [name for name in names if not name.startswith(HIDDEN_PREFIX)]
        for name in names:
            check_path(name)

        children: List[Tuple[TreeEntry, Optional[TreeResult]]] = []
        for name in names:
            child = directory / name
            if child.is_dir():
                recorded = self.record_path(child)
                subtree = self.build(child, visited)
                children.append((TreeEntry(KIND_TREE, subtree.fingerprint, recorded), subtree))
            elif child.is_file():
                recorded = self.record_path(child)
                blob_id = self.object_store.write_object(read_file_bytes(child))
                children.append((TreeEntry(KIND_BLOB, blob_id, recorded), None))
            else:
                logger.debug("Skipping special or dangling entry %s", child)

        data = serialize_tree([entry for entry, _ in children])
        tree_id = fingerprint(data)
        self.object_store.store(tree_id, data)
        return TreeResult(tree_id, data, children)

    def record_path(self, path: Path) -> str:
        """Path written into a tree or index line for ``path``.

        The working-root-relative POSIX path (the bare name at top level)
        when that location resolves to itself; otherwise the fully resolved
        absolute path, so symlink aliases are recorded at their real location.

        Raises:
            InvalidObjectError: If the recorded path cannot be written as a line
        """
        path = Path(path)
        if not path.is_absolute():
            path = self.work_root / path
        resolved = path.resolve()
        try:
            relative = path.relative_to(self.work_root)
        except ValueError:
            return check_path(resolved.as_posix())
        if (self.work_root.resolve() / relative) == resolved:
            return check_path(relative.as_posix())
        return check_path(resolved.as_posix())


def read_file_bytes(path: Path) -> bytes:
    """Read a file, mapping OS errors onto the tinyvcs taxonomy."""
    try:
        return Path(path).read_bytes()
    except FileNotFoundError as e:
        raise NotFoundError(f"File not found: {path}") from e
    except PermissionError as e:
        raise AccessDeniedError(f"Cannot read file {path}") from e
    except OSError as e:
        raise IOFailureError(f"Failed to read {path}: {e}") from e
