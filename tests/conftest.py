"""Pytest configuration and shared fixtures."""

from datetime import datetime
from pathlib import Path

import pytest

from tinyvcs.core import Repository, RepositoryConfig

FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create an empty working directory."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def config() -> RepositoryConfig:
    """Repository config with a frozen clock."""
    return RepositoryConfig(clock=lambda: FIXED_TIME)


@pytest.fixture
def repo(workspace: Path, config: RepositoryConfig) -> Repository:
    """Create an initialized repository (root commit already made)."""
    return Repository.init(workspace, config)


@pytest.fixture
def sample_tree(workspace: Path) -> Path:
    """Create a small directory tree in the workspace.

    workspace/
        project/
            a.txt        "alpha"
            sub/
                b.txt    "beta"
    """
    project = workspace / "project"
    (project / "sub").mkdir(parents=True)
    (project / "a.txt").write_bytes(b"alpha")
    (project / "sub" / "b.txt").write_bytes(b"beta")
    return project
