"""Staging area management for tinyvcs.

The staging index is an append-only text log with one line per staged file
or directory::

    <blob|tree> <fingerprint> <path>

Entries are deduplicated by fingerprint and the log is truncated only when a
commit succeeds.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Set, Union

from tinyvcs.constants import INDEX_FILE, KIND_BLOB, KIND_TREE
from tinyvcs.errors import AccessDeniedError, IOFailureError, NotFoundError
from tinyvcs.storage import ObjectStore, TreeBuilder, TreeEntry, parse_tree
from tinyvcs.storage.tree_builder import DirIdentity, is_hidden, read_file_bytes

logger = logging.getLogger(__name__)


class StagingIndex:
    """The on-disk staging log.

    Attributes:
        index_path: Path to the index file (.tinyvcs/index)
    """

    def __init__(self, vcs_dir: Path):
        self.index_path = Path(vcs_dir) / INDEX_FILE

    def text(self) -> str:
        """Full index text; empty if the index file is missing or empty."""
        try:
            return self.index_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except OSError as e:
            raise IOFailureError(f"Failed to read index: {e}") from e

    def entries(self) -> List[TreeEntry]:
        return parse_tree(self.text())

    def contains(self, object_id: str) -> bool:
        """Check whether any entry already records ``object_id``."""
        return any(entry.fingerprint == object_id for entry in self.entries())

    def append(self, entry: TreeEntry) -> bool:
        """Append ``entry`` unless its fingerprint is already staged.

        Returns:
            True if a line was written, False if it was a duplicate
        """
        if self.contains(entry.fingerprint):
            logger.debug("Index already holds %s, skipping %s", entry.fingerprint, entry.path)
            return False
        try:
            with open(self.index_path, "a", encoding="utf-8") as f:
                f.write(entry.to_line())
        except OSError as e:
            raise IOFailureError(f"Failed to append to index: {e}") from e
        logger.debug("Staged %s %s %s", entry.kind, entry.fingerprint, entry.path)
        return True

    def clear(self) -> None:
        """Truncate the index to empty."""
        try:
            self.index_path.write_text("", encoding="utf-8")
        except OSError as e:
            raise IOFailureError(f"Failed to clear index: {e}") from e

    def is_empty(self) -> bool:
        return not self.text()


class Stager:
    """Stages files and directories into the object store and index.

    Attributes:
        work_root: Root of the working directory
        object_store: Store receiving blobs and trees
        index: Staging index receiving entries
    """

    def __init__(self, work_root: Path, object_store: ObjectStore, index: StagingIndex):
        self.work_root = Path(work_root)
        self.object_store = object_store
        self.index = index
        self.tree_builder = TreeBuilder(self.work_root, object_store)

    def stage(self, path: Union[str, Path]) -> Optional[str]:
        """Stage ``path`` and everything beneath it.

        Dot-named entries are skipped silently. Cycle protection covers this
        call only: every call starts with an empty set of visited
        directories.

        Args:
            path: File or directory, absolute or relative to the working root

        Returns:
            Fingerprint of the staged entry, or None if it was skipped

        Raises:
            NotFoundError: If ``path`` does not exist
            AccessDeniedError: If ``path`` cannot be read
            CycleDetectedError: If a directory is reached twice
            InvalidObjectError: If a path holds a newline or is not UTF-8;
                nothing is added to the index
            IOFailureError: If reading or writing fails
        """
        abs_path = self._resolve_path(path)

        if not abs_path.exists():
            raise NotFoundError(f"{path}: file not found")
        if is_hidden(abs_path):
            logger.debug("Ignoring hidden entry %s", abs_path)
            return None
        if not os.access(abs_path, os.R_OK):
            raise AccessDeniedError(f"{path}: permission denied")

        recorded = self.tree_builder.record_path(abs_path)

        if abs_path.is_dir():
            visited: Set[DirIdentity] = set()
            tree = self.tree_builder.build(abs_path, visited)
            self.index.append(TreeEntry(KIND_TREE, tree.fingerprint, recorded))
            for entry in tree.walk():
                self.index.append(entry)
            return tree.fingerprint

        blob_id = self.object_store.write_object(read_file_bytes(abs_path))
        self.index.append(TreeEntry(KIND_BLOB, blob_id, recorded))
        return blob_id

    def _resolve_path(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        if path.is_absolute():
            return path
        return self.work_root / path
