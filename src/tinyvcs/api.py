"""Convenience entry points that never raise.

``stage``, ``commit`` and ``checkout`` here wrap the strict
:class:`~tinyvcs.core.repository.Repository` methods. Any failure is logged
at ERROR level on the ``tinyvcs.api`` logger and swallowed; the caller gets
``None`` back and cannot tell a failure apart from a skipped entry. Use the
Repository methods directly when failures must be observed.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from tinyvcs.core.repository import Repository

logger = logging.getLogger(__name__)


def stage(repo: Repository, path: Union[str, Path]) -> Optional[str]:
    """Stage ``path``; return its fingerprint, or None on skip or failure."""
    try:
        return repo.stage(path)
    except Exception as e:
        logger.error("Failed to stage %s: %s", path, e)
        return None


def commit(repo: Repository, author: str, message: str) -> Optional[str]:
    """Commit the index; return the commit fingerprint, or None on failure."""
    try:
        return repo.commit(author, message)
    except Exception as e:
        logger.error("Failed to commit: %s", e)
        return None


def checkout(repo: Repository, commit_id: str) -> None:
    """Check out ``commit_id``; failures are only logged."""
    try:
        repo.checkout(commit_id)
    except Exception as e:
        logger.error("Failed to check out %s: %s", commit_id, e)
