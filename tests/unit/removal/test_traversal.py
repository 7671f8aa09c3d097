"""Unit tests for the explicit-stack post-order traversal."""

import errno
import os
from collections import Counter
from pathlib import Path

import pytest
from conftest import make_deep_chain, posix_only
from forcerm.errors import RemovalPermissionError
from forcerm.removal.executor import DIR_FD_SUPPORTED, DeletionExecutor
from forcerm.removal.location import Location
from forcerm.removal.models import Node, NodeKind
from forcerm.removal.remediator import PlatformRemediator, Remediator
from forcerm.removal.traversal import remove_tree


class RefusingRemediator(Remediator):
    """Remediator whose permission changes always fail."""

    def remediate(self, node: Node, at: Location | None = None) -> bool:
        return False


class SpyExecutor(DeletionExecutor):
    """Executor that records classifications and deletions by full path.

    Entries are listed in sorted order so the visiting order is stable.
    """

    def __init__(self, remediator: Remediator | None = None, **kwargs) -> None:
        super().__init__(remediator or PlatformRemediator(), **kwargs)
        self.classified: Counter[Path] = Counter()
        self.deleted: list[Path] = []
        self.fail_on: Path | None = None
        self.extra_entries: dict[Path, list[str]] = {}
        self.closed = False

    def classify(self, name: str, parent: Node) -> Node:
        node = super().classify(name, parent)
        self.classified[node.path] += 1
        return node

    def enter(self, node: Node) -> list[str]:
        names = sorted(super().enter(node))
        return names + self.extra_entries.get(node.path, [])

    def delete(self, node: Node) -> None:
        if node.path == self.fail_on:
            raise RemovalPermissionError(node.path, "Permission denied")
        super().delete(node)
        self.deleted.append(node.path)

    def close(self) -> None:
        self.closed = True
        super().close()


def _root(path: Path) -> Node:
    kind = NodeKind.DIRECTORY if path.is_dir() and not path.is_symlink() else NodeKind.FILE
    return Node(str(path), kind)


class TestRemoveTree:
    """Tests for remove_tree()."""

    def test_removes_whole_tree(self, sample_tree: Path) -> None:
        """Every node under the root and the root itself are removed."""
        executor = SpyExecutor()

        remove_tree(_root(sample_tree), executor)

        assert not sample_tree.exists()
        assert executor.removed == len(executor.deleted)

    def test_removes_whole_tree_by_full_paths(self, sample_tree: Path) -> None:
        """Trees are removed the same way without descriptor-relative syscalls."""
        executor = SpyExecutor(use_dir_fd=False)

        remove_tree(_root(sample_tree), executor)

        assert not sample_tree.exists()

    def test_children_removed_before_parents(self, sample_tree: Path) -> None:
        """Each directory is deleted after all of its descendants."""
        executor = SpyExecutor()

        remove_tree(_root(sample_tree), executor)

        position = {path: index for index, path in enumerate(executor.deleted)}
        for path, index in position.items():
            for ancestor in path.parents:
                if ancestor in position:
                    assert position[ancestor] > index
        assert executor.deleted[-1] == sample_tree

    def test_no_node_visited_twice(self, sample_tree: Path) -> None:
        """Each node is classified at most once; the root not at all."""
        executor = SpyExecutor()

        remove_tree(_root(sample_tree), executor)

        assert sample_tree not in executor.classified
        assert all(count == 1 for count in executor.classified.values())
        assert len(executor.deleted) == len(set(executor.deleted))

    @posix_only
    def test_symlink_target_untouched(self, sample_tree: Path) -> None:
        """Links inside the tree are removed as links."""
        outside = sample_tree.parent / "outside.txt"

        remove_tree(_root(sample_tree), SpyExecutor())

        assert outside.read_text() == "keep me"

    @posix_only
    def test_symlink_to_directory_not_traversed(self, tmp_path: Path) -> None:
        """A link to a directory is never entered."""
        real = tmp_path / "real"
        real.mkdir()
        (real / "keep.txt").write_text("keep")
        root = tmp_path / "root"
        root.mkdir()
        (root / "link").symlink_to(real, target_is_directory=True)
        executor = SpyExecutor()

        remove_tree(_root(root), executor)

        assert (real / "keep.txt").exists()
        assert root / "link" / "keep.txt" not in executor.classified

    def test_single_file_root(self, tmp_path: Path) -> None:
        """A file root is deleted directly."""
        target = tmp_path / "file.txt"
        target.write_text("content")

        remove_tree(_root(target), SpyExecutor())

        assert not target.exists()

    def test_missing_root_is_noop(self, tmp_path: Path) -> None:
        """A root classified as missing does nothing."""
        executor = SpyExecutor()

        remove_tree(Node(str(tmp_path / "nope"), NodeKind.MISSING), executor)

        assert executor.deleted == []

    def test_vanished_child_is_skipped(self, sample_tree: Path) -> None:
        """A child gone between listing and visiting is a no-op."""
        executor = SpyExecutor()
        ghost = sample_tree / "ghost.txt"
        executor.extra_entries[sample_tree] = ["ghost.txt"]

        remove_tree(_root(sample_tree), executor)

        assert not sample_tree.exists()
        assert executor.classified[ghost] == 1
        assert ghost not in executor.deleted

    @pytest.mark.skipif(not DIR_FD_SUPPORTED, reason="descriptor-relative syscalls required")
    def test_chain_far_beyond_path_max(self, tmp_path: Path) -> None:
        """A 100,000-level chain is removed despite path length and recursion limits."""
        depth = 100_000
        top = make_deep_chain(tmp_path, depth)
        executor = DeletionExecutor(PlatformRemediator())

        remove_tree(Node(str(top), NodeKind.DIRECTORY), executor)

        assert not top.exists()
        assert executor.removed == depth

    def test_fail_fast_leaves_partial_tree(self, tmp_path: Path) -> None:
        """The first terminal failure stops the walk; earlier siblings stay removed."""
        root = tmp_path / "root"
        root.mkdir()
        for name in ("a.txt", "b.txt", "c.txt"):
            (root / name).write_text(name)
        executor = SpyExecutor()
        executor.fail_on = root / "b.txt"

        with pytest.raises(RemovalPermissionError) as exc_info:
            remove_tree(_root(root), executor)

        # Entries are popped in reverse listing order: c, then b fails.
        assert exc_info.value.path == str(root / "b.txt")
        assert not (root / "c.txt").exists()
        assert (root / "b.txt").exists()
        assert (root / "a.txt").exists()
        assert root.exists()
        assert executor.closed

    def test_failure_without_remediation(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """With a remediator that never succeeds, access failures are terminal."""
        root = tmp_path / "root"
        root.mkdir()
        (root / "a.txt").write_text("a")
        executor = SpyExecutor(RefusingRemediator())
        real_unlink = os.unlink

        def denied(path, *args, **kwargs):
            if Path(path).name == "a.txt":
                raise PermissionError(errno.EACCES, "Permission denied")
            return real_unlink(path, *args, **kwargs)

        monkeypatch.setattr(os, "unlink", denied)
        with pytest.raises(RemovalPermissionError):
            remove_tree(_root(root), executor)
        monkeypatch.undo()

        assert (root / "a.txt").exists()
