"""Storage layer for tinyvcs.

This module provides content fingerprints, the content-addressable object
store and the tree builder.
"""

from tinyvcs.storage.fingerprint import fingerprint, is_fingerprint
from tinyvcs.storage.object_store import ObjectStore
from tinyvcs.storage.tree_builder import (
    TreeBuilder,
    TreeEntry,
    TreeResult,
    parse_tree,
    serialize_tree,
)

__all__ = [
    "fingerprint",
    "is_fingerprint",
    "ObjectStore",
    "TreeBuilder",
    "TreeEntry",
    "TreeResult",
    "parse_tree",
    "serialize_tree",
]
