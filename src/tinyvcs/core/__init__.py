"""Core engine layer for tinyvcs.

This module provides the staging index, commit assembly, checkout and the
repository handle that wires them together.
"""

from tinyvcs.core.checkout import CheckoutEngine, CheckoutState
from tinyvcs.core.commit import Commit, CommitManager, Head
from tinyvcs.core.repository import Repository, RepositoryConfig
from tinyvcs.core.staging import Stager, StagingIndex

__all__ = [
    "CheckoutEngine",
    "CheckoutState",
    "Commit",
    "CommitManager",
    "Head",
    "Repository",
    "RepositoryConfig",
    "Stager",
    "StagingIndex",
]
