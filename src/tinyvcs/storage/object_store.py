"""Content-addressable object storage for tinyvcs.

Objects (blobs, trees and commits) are stored as flat files named by their
fingerprint in .tinyvcs/objects/. Objects are write-once: storing a
fingerprint that already exists leaves the existing file untouched, and
nothing is ever removed.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator

from tinyvcs.constants import OBJECTS_DIR
from tinyvcs.errors import (
    IOFailureError,
    ObjectCorruptedError,
    ObjectNotFoundError,
)
from tinyvcs.storage.fingerprint import (
    fingerprint,
    is_fingerprint,
    validate_fingerprint,
)

logger = logging.getLogger(__name__)


class ObjectStore:
    """Write-once store of byte sequences keyed by fingerprint.

    Storage layout:
        .tinyvcs/objects/<fingerprint>

    Attributes:
        vcs_dir: Path to the .tinyvcs directory
        objects_dir: Path to the objects directory
        verify: Recompute and check fingerprints on read

    Example:
        >>> store = ObjectStore(Path(".tinyvcs"))
        >>> fp = store.write_object(b"hello")
        >>> assert store.read(fp) == b"hello"
    """

    def __init__(self, vcs_dir: Path, verify: bool = True) -> None:
        """Initialize the object store.

        Args:
            vcs_dir: Path to .tinyvcs directory
            verify: Whether reads verify content against the fingerprint

        Raises:
            ValueError: If vcs_dir doesn't exist
        """
        self.vcs_dir = Path(vcs_dir)
        self.objects_dir = self.vcs_dir / OBJECTS_DIR
        self.verify = verify

        if not self.vcs_dir.exists():
            raise ValueError(f"tinyvcs directory not found: {vcs_dir}")

    def write_object(self, content: bytes) -> str:
        """Fingerprint ``content``, store it and return the fingerprint."""
        object_id = fingerprint(content)
        self.store(object_id, content)
        return object_id

    def store(self, object_id: str, content: bytes) -> bool:
        """Write ``content`` under ``object_id`` unless it already exists.

        Uses atomic write (tmp file + rename) so a reader never sees a
        partially written object.

        Args:
            object_id: Fingerprint of ``content``
            content: Bytes to store

        Returns:
            True if a new object was written, False if it already existed

        Raises:
            ValueError: If object_id is malformed
            IOFailureError: If the write fails
        """
        validate_fingerprint(object_id)
        if self.exists(object_id):
            return False

        object_path = self._get_object_path(object_id)
        try:
            self.objects_dir.mkdir(parents=True, exist_ok=True)
            tmp_fd, tmp_path = tempfile.mkstemp(
                dir=self.objects_dir,
                prefix=".tmp_",
            )
        except OSError as e:
            raise IOFailureError(f"Failed to write object {object_id}: {e}") from e

        try:
            with os.fdopen(tmp_fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, object_path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise IOFailureError(f"Failed to write object {object_id}: {e}") from e

        logger.debug("Stored object %s (%d bytes)", object_id, len(content))
        return True

    def read(self, object_id: str) -> bytes:
        """Read an object from the store.

        Raises:
            ObjectNotFoundError: If no object has this fingerprint
            ObjectCorruptedError: If verification is on and the content
                no longer matches its fingerprint
            ValueError: If object_id is malformed
            IOFailureError: If the read fails
        """
        validate_fingerprint(object_id)
        object_path = self._get_object_path(object_id)

        try:
            content = object_path.read_bytes()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"Object not found: {object_id}") from e
        except OSError as e:
            raise IOFailureError(f"Failed to read object {object_id}: {e}") from e

        if self.verify:
            actual = fingerprint(content)
            if actual != object_id:
                raise ObjectCorruptedError(
                    f"Object corrupted: expected {object_id}, got {actual}"
                )

        return content

    def read_text(self, object_id: str) -> str:
        """Read a tree or commit object as UTF-8 text."""
        return self.read(object_id).decode("utf-8")

    def exists(self, object_id: str) -> bool:
        """Check if an object exists. Malformed fingerprints never exist."""
        if not is_fingerprint(object_id):
            return False
        return self._get_object_path(object_id).is_file()

    def iter_objects(self) -> Iterator[str]:
        """Yield the fingerprints of all stored objects in sorted order."""
        if not self.objects_dir.is_dir():
            return
        for path in sorted(self.objects_dir.iterdir()):
            if is_fingerprint(path.name):
                yield path.name

    def _get_object_path(self, object_id: str) -> Path:
        return self.objects_dir / object_id
