"""Destructive checkout of a commit into the working directory.

Checkout wipes the working directory (everything except the storage
directory and protected names), then replays the commit's tree. There is no
partial checkout and no rollback: if an object is missing half way, the
files restored so far stay and the wiped content is gone.
"""

import enum
import fnmatch
import logging
import shutil
from pathlib import Path
from typing import Iterable, Sequence, Set

from tinyvcs.constants import KIND_BLOB, KIND_TREE
from tinyvcs.core.commit import tree_of
from tinyvcs.errors import IOFailureError
from tinyvcs.storage import ObjectStore, parse_tree
from tinyvcs.storage.fingerprint import validate_fingerprint

logger = logging.getLogger(__name__)


class CheckoutState(enum.Enum):
    """Working directory states, reached in order during one checkout."""

    DIRTY = "dirty"
    CLEARED = "cleared"
    RESTORED = "restored"


class CheckoutEngine:
    """Rehydrates a commit's tree into the working directory.

    Attributes:
        work_root: Working directory that is cleared and restored
        vcs_dir: Storage directory, never touched by the wipe
        object_store: Store the commit, trees and blobs are read from
        protected: fnmatch patterns of top-level names kept by the wipe
        state: Last state reached by the most recent checkout
    """

    def __init__(
        self,
        work_root: Path,
        vcs_dir: Path,
        object_store: ObjectStore,
        protected: Sequence[str] = (),
    ):
        self.work_root = Path(work_root)
        self.vcs_dir = Path(vcs_dir)
        self.object_store = object_store
        self.protected = tuple(protected)
        self.state = CheckoutState.DIRTY

    def checkout(self, commit_id: str) -> None:
        """Replace the working directory with the content of ``commit_id``.

        Raises:
            ObjectNotFoundError: If the commit or any object it reaches is
                missing; restoration stops at that point
            InvalidObjectError: If the commit or a tree cannot be parsed
            IOFailureError: If deleting or writing fails
            ValueError: If ``commit_id`` is malformed; nothing is deleted
        """
        validate_fingerprint(commit_id)
        self.state = CheckoutState.DIRTY
        self.clear()
        self.state = CheckoutState.CLEARED

        commit_text = self.object_store.read_text(commit_id)
        tree_id = tree_of(commit_text)
        self.restore_tree(tree_id, set())
        self.state = CheckoutState.RESTORED

        logger.info("Checked out %s (tree %s)", commit_id, tree_id)

    def clear(self) -> None:
        """Delete every top-level entry except storage and protected names."""
        for child in sorted(self.work_root.iterdir()):
            if self.is_protected(child):
                continue
            try:
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()
            except OSError as e:
                raise IOFailureError(f"Failed to delete {child}: {e}") from e
            logger.debug("Removed %s", child)

    def is_protected(self, path: Path) -> bool:
        if path.name == self.vcs_dir.name:
            return True
        return any(fnmatch.fnmatch(path.name, pattern) for pattern in self.protected)

    def restore_tree(self, tree_id: str, restored: Set[str]) -> None:
        """Replay one tree object.

        ``restored`` holds trees already replayed during this checkout; a
        cumulative tree can list the same subtree many times.
        """
        if tree_id in restored:
            return
        restored.add(tree_id)

        for entry in parse_tree(self.object_store.read(tree_id)):
            target = self.target_path(entry.path)
            if entry.kind == KIND_BLOB:
                self._write_blob(entry.fingerprint, target)
            elif entry.kind == KIND_TREE:
                self._make_dir(target)
                self.restore_tree(entry.fingerprint, restored)

    def target_path(self, recorded: str) -> Path:
        """Location a recorded path is restored to."""
        path = Path(recorded)
        if path.is_absolute():
            return path
        return self.work_root / path

    def _write_blob(self, blob_id: str, target: Path) -> None:
        content = self.object_store.read(blob_id)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise IOFailureError(f"Failed to restore {target}: {e}") from e
        logger.debug("Restored %s from %s", target, blob_id)

    def _make_dir(self, target: Path) -> None:
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailureError(f"Failed to create {target}: {e}") from e


def protected_patterns(*sources: Iterable[str]) -> tuple:
    """Merge pattern sources, dropping blanks and duplicates, keeping order."""
    seen = []
    for source in sources:
        for pattern in source:
            pattern = pattern.strip()
            if pattern and pattern not in seen:
                seen.append(pattern)
    return tuple(seen)
