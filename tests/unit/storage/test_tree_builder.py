"""Unit tests for TreeBuilder and tree entries."""

import os
import sys
from pathlib import Path

import pytest

from tinyvcs.errors import CycleDetectedError, InvalidObjectError
from tinyvcs.storage import ObjectStore, TreeBuilder, TreeEntry, fingerprint, parse_tree
from tinyvcs.storage.tree_builder import serialize_tree


@pytest.fixture
def store(workspace: Path) -> ObjectStore:
    vcs = workspace / ".tinyvcs"
    (vcs / "objects").mkdir(parents=True)
    return ObjectStore(vcs)


@pytest.fixture
def builder(workspace: Path, store: ObjectStore) -> TreeBuilder:
    return TreeBuilder(workspace, store)


class TestTreeEntry:
    """Test line serialization of entries."""

    def test_to_line(self) -> None:
        entry = TreeEntry("blob", fingerprint(b"hello"), "testfile.txt")
        assert entry.to_line() == f"blob {fingerprint(b'hello')} testfile.txt\n"

    def test_from_line_keeps_spaces_in_path(self) -> None:
        fp = fingerprint(b"x")
        entry = TreeEntry.from_line(f"blob {fp} my file.txt\n")
        assert entry == TreeEntry("blob", fp, "my file.txt")

    @pytest.mark.parametrize(
        "line",
        [
            "blob onlytwo",
            f"commit {'a' * 40} path",
            "blob nothex path",
            f"tree {'a' * 40} ",
        ],
    )
    def test_from_line_rejects_malformed(self, line: str) -> None:
        with pytest.raises(InvalidObjectError):
            TreeEntry.from_line(line)

    def test_parse_tree_skips_blank_lines(self) -> None:
        entries = [
            TreeEntry("blob", fingerprint(b"1"), "one"),
            TreeEntry("tree", fingerprint(b"2"), "two"),
        ]
        data = serialize_tree(entries) + b"\n"
        assert parse_tree(data) == entries

    def test_to_line_rejects_newline_in_path(self) -> None:
        entry = TreeEntry("blob", fingerprint(b"x"), "a\nb.txt")
        with pytest.raises(InvalidObjectError, match="newline"):
            entry.to_line()

    def test_carriage_return_in_path_survives(self) -> None:
        entry = TreeEntry("blob", fingerprint(b"x"), "a\rb.txt")
        assert parse_tree(serialize_tree([entry])) == [entry]


class TestBuild:
    """Test recursive tree building."""

    def test_flat_directory(self, builder: TreeBuilder, store: ObjectStore, sample_tree: Path) -> None:
        (sample_tree / "sub" / "b.txt").unlink()
        (sample_tree / "sub").rmdir()

        result = builder.build(sample_tree, set())

        assert result.data == f"blob {fingerprint(b'alpha')} project/a.txt\n".encode()
        assert result.fingerprint == fingerprint(result.data)
        assert store.read(result.fingerprint) == result.data

    def test_nested_directory(self, builder: TreeBuilder, store: ObjectStore, sample_tree: Path) -> None:
        result = builder.build(sample_tree, set())

        sub_data = f"blob {fingerprint(b'beta')} project/sub/b.txt\n".encode()
        assert result.entries == [
            TreeEntry("blob", fingerprint(b"alpha"), "project/a.txt"),
            TreeEntry("tree", fingerprint(sub_data), "project/sub"),
        ]
        assert store.read(fingerprint(sub_data)) == sub_data

    def test_every_referenced_object_is_stored(
        self, builder: TreeBuilder, store: ObjectStore, sample_tree: Path
    ) -> None:
        result = builder.build(sample_tree, set())
        for entry in result.walk():
            assert store.exists(entry.fingerprint)

    def test_walk_is_preorder(self, builder: TreeBuilder, sample_tree: Path) -> None:
        result = builder.build(sample_tree, set())
        assert [entry.path for entry in result.walk()] == [
            "project/a.txt",
            "project/sub",
            "project/sub/b.txt",
        ]

    def test_children_sorted_by_name(self, builder: TreeBuilder, workspace: Path) -> None:
        folder = workspace / "folder"
        folder.mkdir()
        for name in ("c", "a", "b"):
            (folder / name).write_text(name)

        result = builder.build(folder, set())

        assert [entry.path for entry in result.entries] == ["folder/a", "folder/b", "folder/c"]

    def test_empty_directory(self, builder: TreeBuilder, store: ObjectStore, workspace: Path) -> None:
        (workspace / "empty").mkdir()
        result = builder.build(workspace / "empty", set())
        assert result.data == b""
        assert store.exists(result.fingerprint)

    def test_hidden_entries_skipped_recursively(self, builder: TreeBuilder, sample_tree: Path) -> None:
        (sample_tree / ".env").write_text("SECRET=1")
        (sample_tree / "sub" / ".cache").mkdir()
        (sample_tree / "sub" / ".cache" / "data").write_text("cached")

        result = builder.build(sample_tree, set())

        paths = [entry.path for entry in result.walk()]
        assert not any("/." in path for path in paths)

    def test_visited_is_updated(self, builder: TreeBuilder, sample_tree: Path) -> None:
        visited = set()
        builder.build(sample_tree, visited)
        assert len(visited) == 2

    @pytest.mark.skipif(sys.platform == "win32", reason="newlines are not valid in file names")
    def test_newline_name_rejected_before_storing(
        self, builder: TreeBuilder, store: ObjectStore, workspace: Path
    ) -> None:
        folder = workspace / "folder"
        folder.mkdir()
        (folder / "0first.txt").write_text("first")
        (folder / "a\nb.txt").write_text("x")

        with pytest.raises(InvalidObjectError):
            builder.build(folder, set())

        assert list(store.iter_objects()) == []

    @pytest.mark.skipif(sys.platform != "linux", reason="needs byte-transparent file names")
    def test_undecodable_name_rejected_before_storing(
        self, builder: TreeBuilder, store: ObjectStore, workspace: Path
    ) -> None:
        folder = workspace / "folder"
        folder.mkdir()
        (folder / "0first.txt").write_text("first")
        with open(os.path.join(os.fsencode(folder), b"\xff.txt"), "wb") as f:
            f.write(b"x")

        with pytest.raises(InvalidObjectError, match="UTF-8"):
            builder.build(folder, set())

        assert list(store.iter_objects()) == []

    @pytest.mark.skipif(sys.platform == "win32", reason="carriage returns are not valid in file names")
    def test_carriage_return_name_built(self, builder: TreeBuilder, workspace: Path) -> None:
        folder = workspace / "folder"
        folder.mkdir()
        (folder / "a\rb.txt").write_text("x")

        result = builder.build(folder, set())

        assert parse_tree(result.data) == [TreeEntry("blob", fingerprint(b"x"), "folder/a\rb.txt")]


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
class TestCycles:
    """Test cycle detection and symlink path recording."""

    def test_self_referential_symlink(self, builder: TreeBuilder, sample_tree: Path) -> None:
        os.symlink(sample_tree, sample_tree / "sub" / "loop")

        with pytest.raises(CycleDetectedError, match="cycle"):
            builder.build(sample_tree, set())

    def test_already_visited_directory(self, builder: TreeBuilder, sample_tree: Path) -> None:
        visited = set()
        builder.build(sample_tree / "sub", visited)

        with pytest.raises(CycleDetectedError):
            builder.build(sample_tree, visited)

    def test_fresh_visited_set_allows_rebuild(self, builder: TreeBuilder, sample_tree: Path) -> None:
        first = builder.build(sample_tree, set())
        second = builder.build(sample_tree, set())
        assert first.fingerprint == second.fingerprint

    def test_symlinked_file_records_resolved_path(
        self, builder: TreeBuilder, workspace: Path, tmp_path: Path
    ) -> None:
        outside = tmp_path / "outside.txt"
        outside.write_text("elsewhere")
        folder = workspace / "folder"
        folder.mkdir()
        os.symlink(outside, folder / "alias.txt")

        result = builder.build(folder, set())

        assert result.entries == [
            TreeEntry("blob", fingerprint(b"elsewhere"), outside.resolve().as_posix())
        ]


class TestRecordPath:
    """Test the path recording policy."""

    def test_top_level_is_bare_name(self, builder: TreeBuilder, workspace: Path) -> None:
        assert builder.record_path(workspace / "testfile.txt") == "testfile.txt"

    def test_nested_is_root_relative(self, builder: TreeBuilder, workspace: Path) -> None:
        assert builder.record_path(workspace / "a" / "b.txt") == "a/b.txt"

    def test_relative_input(self, builder: TreeBuilder) -> None:
        assert builder.record_path(Path("x.txt")) == "x.txt"

    def test_outside_root_is_absolute(self, builder: TreeBuilder, tmp_path: Path) -> None:
        outside = tmp_path / "elsewhere.txt"
        assert builder.record_path(outside) == outside.resolve().as_posix()
