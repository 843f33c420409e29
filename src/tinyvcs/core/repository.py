"""Repository handle tying storage, staging, commits and checkout together.

Every operation goes through an explicit :class:`Repository` carrying its
root path and configuration, so several repositories can live in one
process.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, Union

from tinyvcs.constants import (
    BOOTSTRAP_AUTHOR,
    BOOTSTRAP_MESSAGE,
    OBJECTS_DIR,
    PROTECT_ENV_VAR,
    TINYVCS_DIR,
)
from tinyvcs.core.checkout import CheckoutEngine, protected_patterns
from tinyvcs.core.commit import Commit, CommitManager, Head
from tinyvcs.core.staging import Stager, StagingIndex
from tinyvcs.errors import IOFailureError, RepositoryNotFoundError
from tinyvcs.storage import ObjectStore, TreeEntry

logger = logging.getLogger(__name__)


class RepositoryConfig:
    """Per-repository settings.

    Attributes:
        storage_dir: Name of the storage directory under the root
        protected: fnmatch patterns of top-level names checkout never deletes
        bootstrap_author: Author of the implicit root commit
        bootstrap_message: Message of the implicit root commit
        verify_objects: Recompute fingerprints when reading objects
        clock: Callable returning commit timestamps
    """

    def __init__(
        self,
        storage_dir: str = TINYVCS_DIR,
        protected: Sequence[str] = (),
        bootstrap_author: str = BOOTSTRAP_AUTHOR,
        bootstrap_message: str = BOOTSTRAP_MESSAGE,
        verify_objects: bool = True,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.storage_dir = storage_dir
        self.protected = protected_patterns(protected)
        self.bootstrap_author = bootstrap_author
        self.bootstrap_message = bootstrap_message
        self.verify_objects = verify_objects
        self.clock = clock

    @classmethod
    def from_env(cls, **overrides) -> "RepositoryConfig":
        """Build a config, adding protected patterns from TINYVCS_PROTECT."""
        env_patterns = os.getenv(PROTECT_ENV_VAR, "").split(",")
        overrides["protected"] = protected_patterns(
            overrides.get("protected", ()), env_patterns
        )
        return cls(**overrides)


class Repository:
    """A tinyvcs repository rooted at a working directory.

    Attributes:
        root: Working directory (resolved)
        vcs_dir: Storage directory (root / config.storage_dir)
        config: RepositoryConfig in effect
        object_store: ObjectStore for blobs, trees and commits
        index: StagingIndex
        head: Head pointer
    """

    def __init__(self, root: Union[str, Path], config: Optional[RepositoryConfig] = None):
        self.config = config or RepositoryConfig()
        self.root = Path(root).resolve()
        self.vcs_dir = self.root / self.config.storage_dir

        if not self.vcs_dir.is_dir():
            raise RepositoryNotFoundError(
                f"Not a tinyvcs repository (no {self.config.storage_dir}/ found in {self.root})"
            )

        self.object_store = ObjectStore(self.vcs_dir, verify=self.config.verify_objects)
        self.index = StagingIndex(self.vcs_dir)
        self.head = Head(self.vcs_dir)
        self.stager = Stager(self.root, self.object_store, self.index)
        self.commits = CommitManager(
            self.object_store, self.index, self.head, clock=self.config.clock
        )
        self.checkout_engine = CheckoutEngine(
            self.root, self.vcs_dir, self.object_store, self.config.protected
        )

    @classmethod
    def init(
        cls, root: Union[str, Path], config: Optional[RepositoryConfig] = None
    ) -> "Repository":
        """Create the on-disk layout if absent and return the repository.

        A new repository gets an implicit root commit, so HEAD is never
        empty once init returns. Existing repositories are opened as is.
        """
        config = config or RepositoryConfig()
        vcs_dir = Path(root).resolve() / config.storage_dir
        try:
            (vcs_dir / OBJECTS_DIR).mkdir(parents=True, exist_ok=True)
            for file_path in (StagingIndex(vcs_dir).index_path, Head(vcs_dir).head_path):
                if not file_path.exists():
                    file_path.touch()
        except OSError as e:
            raise IOFailureError(f"Failed to initialize repository: {e}") from e

        repo = cls(root, config)
        if repo.head.read() is None:
            repo.commit(config.bootstrap_author, config.bootstrap_message)
            logger.info("Initialized tinyvcs repository in %s", repo.vcs_dir)
        else:
            logger.debug("Repository already exists in %s", repo.vcs_dir)
        return repo

    @classmethod
    def open(
        cls, root: Union[str, Path], config: Optional[RepositoryConfig] = None
    ) -> "Repository":
        """Open an existing repository.

        Raises:
            RepositoryNotFoundError: If the storage directory is missing
        """
        return cls(root, config)

    def stage(self, path: Union[str, Path]) -> Optional[str]:
        """Stage a file or directory. See :meth:`Stager.stage`."""
        return self.stager.stage(path)

    def commit(self, author: str, message: str) -> str:
        """Commit the index. See :meth:`CommitManager.commit`."""
        return self.commits.commit(author, message)

    def checkout(self, commit_id: str) -> None:
        """Restore a commit. See :meth:`CheckoutEngine.checkout`."""
        self.checkout_engine.checkout(commit_id)

    def head_commit(self) -> Optional[str]:
        return self.head.read()

    def read_commit(self, commit_id: str) -> Commit:
        return self.commits.read_commit(commit_id)

    def log(self, start: Optional[str] = None) -> Iterator[Commit]:
        """Walk the commit chain from ``start`` (default HEAD) to the root."""
        return self.commits.history(start)

    def staged(self) -> List[TreeEntry]:
        return self.index.entries()
