"""Commit objects, the HEAD pointer and the commit manager.

A commit is stored as text with exactly these lines, in order::

    tree <fingerprint>
    parent <fingerprint or nothing>
    author <name>
    date <MM/dd/yyyy HH:mm:ss>
    message <text>

The tree written at commit time is cumulative: the previous commit's tree
bytes followed by the current index text. Tree objects therefore grow with
every commit and hold the whole staged history, not a snapshot.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional

from tinyvcs.constants import COMMIT_DATE_FORMAT, COMMIT_FIELDS, HEAD_FILE, HASH_LENGTH
from tinyvcs.core.staging import StagingIndex
from tinyvcs.errors import InvalidObjectError, IOFailureError
from tinyvcs.storage import ObjectStore, fingerprint, is_fingerprint

logger = logging.getLogger(__name__)

TREE_LABEL = "tree "


class Commit:
    """A parsed commit record.

    Attributes:
        tree: Fingerprint of the commit's tree object
        parent: Fingerprint of the parent commit, "" for the root commit
        author: Author name
        date: Timestamp string in MM/dd/yyyy HH:mm:ss form
        message: Commit message
        fingerprint: Fingerprint of the serialized commit, when known
    """

    def __init__(
        self,
        tree: str,
        parent: str,
        author: str,
        date: str,
        message: str,
        fingerprint: Optional[str] = None,
    ):
        self.tree = tree
        self.parent = parent
        self.author = author
        self.date = date
        self.message = message
        self.fingerprint = fingerprint

    def __repr__(self) -> str:
        short = self.fingerprint[:7] if self.fingerprint else "?"
        return f"Commit({short} tree={self.tree[:7]} parent={self.parent[:7] or '-'})"

    @property
    def is_root(self) -> bool:
        return not self.parent

    def serialize(self) -> str:
        return (
            f"tree {self.tree}\n"
            f"parent {self.parent}\n"
            f"author {self.author}\n"
            f"date {self.date}\n"
            f"message {self.message}\n"
        )

    @classmethod
    def parse(cls, text: str, object_id: Optional[str] = None) -> "Commit":
        """Parse commit text.

        Raises:
            InvalidObjectError: If the labels are missing or out of order
        """
        lines = text.split("\n")
        if len(lines) < len(COMMIT_FIELDS):
            raise InvalidObjectError(f"Commit has too few lines: {object_id or text!r}")

        values = []
        for field, line in zip(COMMIT_FIELDS, lines):
            label = f"{field} "
            if not line.startswith(label):
                raise InvalidObjectError(f"Commit line {field!r} missing: {line!r}")
            values.append(line[len(label):])

        # Messages may contain newlines; keep everything after the label
        message = "\n".join(lines[len(COMMIT_FIELDS) - 1:])[len("message "):]
        if message.endswith("\n"):
            message = message[:-1]
        values[-1] = message

        return cls(*values, fingerprint=object_id)


def tree_of(commit_text: str) -> str:
    """Extract the tree fingerprint from commit text by fixed offset.

    The fingerprint occupies the 40 characters right after the leading
    ``tree `` label.

    Raises:
        InvalidObjectError: If the text does not start with a tree field
    """
    tree_id = commit_text[len(TREE_LABEL):len(TREE_LABEL) + HASH_LENGTH]
    if not commit_text.startswith(TREE_LABEL) or not is_fingerprint(tree_id):
        raise InvalidObjectError("Commit has no tree field")
    return tree_id


class Head:
    """The single mutable pointer to the latest commit.

    Overwritten on every commit; previous values are not kept.
    """

    def __init__(self, vcs_dir: Path):
        self.head_path = Path(vcs_dir) / HEAD_FILE

    def read(self) -> Optional[str]:
        """Return the current commit fingerprint, or None if HEAD is empty."""
        try:
            content = self.head_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise IOFailureError(f"Failed to read HEAD: {e}") from e
        return content or None

    def write(self, object_id: str) -> None:
        try:
            self.head_path.write_text(f"{object_id}\n", encoding="utf-8")
        except OSError as e:
            raise IOFailureError(f"Failed to write HEAD: {e}") from e


class CommitManager:
    """Assembles trees and commits from the staging index.

    Attributes:
        object_store: Store receiving trees and commits
        index: Staging index read and then truncated by each commit
        head: HEAD pointer advanced by each commit
        clock: Callable returning the commit timestamp
    """

    def __init__(
        self,
        object_store: ObjectStore,
        index: StagingIndex,
        head: Head,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.object_store = object_store
        self.index = index
        self.head = head
        self.clock = clock

    def commit(self, author: str, message: str) -> str:
        """Create a commit from the staged index and advance HEAD.

        The steps are not atomic: an I/O failure leaves the store, HEAD and
        the index in whatever state they reached.

        Args:
            author: Author name
            message: Commit message

        Returns:
            Fingerprint of the new commit

        Raises:
            InvalidObjectError: If ``author`` contains a newline; nothing is
                written
            ObjectNotFoundError: If the previous commit or its tree is missing
            IOFailureError: If reading or writing fails
        """
        if "\n" in author:
            raise InvalidObjectError(f"Author must be a single line: {author!r}")

        parent_id = self.head.read()

        prefix = b""
        if parent_id:
            previous = self.object_store.read_text(parent_id)
            prefix = self.object_store.read(tree_of(previous))

        tree_data = prefix + self.index.text().encode("utf-8")
        tree_id = fingerprint(tree_data)
        self.object_store.store(tree_id, tree_data)

        commit = Commit(
            tree=tree_id,
            parent=parent_id or "",
            author=author,
            date=self.clock().strftime(COMMIT_DATE_FORMAT),
            message=message,
        )
        commit_data = commit.serialize().encode("utf-8")
        commit_id = fingerprint(commit_data)
        self.object_store.store(commit_id, commit_data)

        self.head.write(commit_id)
        self.index.clear()

        logger.info(
            "Committed %s (parent %s, tree %s)",
            commit_id,
            parent_id or "none",
            tree_id,
        )
        return commit_id

    def read_commit(self, commit_id: str) -> Commit:
        """Load and parse a commit object."""
        return Commit.parse(self.object_store.read_text(commit_id), object_id=commit_id)

    def history(self, start: Optional[str] = None) -> Iterator[Commit]:
        """Yield commits from ``start`` (default HEAD) back to the root."""
        commit_id = start or self.head.read()
        while commit_id:
            commit = self.read_commit(commit_id)
            yield commit
            commit_id = commit.parent
