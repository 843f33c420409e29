"""tinyvcs - a minimal content-addressable version-control engine.

tinyvcs stores file contents and directory trees under their SHA-1
fingerprints, records staged paths in an append-only index, chains commits
through their parents and restores any commit into the working directory.
"""

__version__ = "0.1.0"
__author__ = "tinyvcs Contributors"

from tinyvcs.core.repository import Repository, RepositoryConfig

__all__ = ["__version__", "__author__", "Repository", "RepositoryConfig"]
