"""Deletion executor.

Issues the removal syscalls for classified nodes and owns the single
remediate-then-retry cycle applied when an operation is denied access.
Classification and directory listing go through the same cycle, so every
retry in the engine flows through one place.

Where the platform allows it, every syscall below the root is made relative
to an open descriptor of the containing directory, so paths of any length
can be removed. Only one directory descriptor is open at a time: the
executor keeps a trail of the directories it has entered and climbs back
through ``..``, checking it lands in the directory it came from.
"""

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from forcerm.errors import RemovalIOError, RemovalPermissionError, translate_os_error
from forcerm.removal.classifier import classify_at
from forcerm.removal.location import DIR_OPEN_FLAGS, Location
from forcerm.removal.models import Node, NodeKind
from forcerm.removal.remediator import Remediator

logger = logging.getLogger(__name__)

T = TypeVar("T")

DIR_FD_SUPPORTED = (
    {os.open, os.lstat, os.unlink, os.rmdir, os.chmod} <= os.supports_dir_fd
    and {os.scandir, os.stat, os.chmod} <= os.supports_fd
)


class DeletionExecutor:
    """Deletes nodes of one tree, remediating permissions at most once per node.

    The root is the node without a parent. The directory containing the
    root is never remediated: only nodes inside the tree have their
    permissions changed.

    Attributes:
        removed: Number of nodes removed so far.
    """

    def __init__(self, remediator: Remediator, *, use_dir_fd: bool = DIR_FD_SUPPORTED) -> None:
        """Initialize the DeletionExecutor.

        Args:
            remediator: Remediator applied on access-control failures.
            use_dir_fd: Address entries relative to directory descriptors.
                If False, full paths are used and depth is limited by the
                platform's maximum path length.
        """
        self._remediator = remediator
        self._use_dir_fd = use_dir_fd
        self._remediated: set[Node] = set()
        # Entered directories with their (st_dev, st_ino), root first.
        self._trail: list[tuple[Node, int, int]] = []
        self._fd: int | None = None
        self.removed = 0

    @property
    def _cursor(self) -> Node | None:
        return self._trail[-1][0] if self._trail else None

    def classify(self, name: str, parent: Node) -> Node:
        """Classify an entry of a directory inside the tree.

        Args:
            name: Entry name.
            parent: Directory node containing the entry.

        Returns:
            Node for the entry, of kind MISSING if it vanished.

        Raises:
            RemovalError: If the entry cannot be inspected even after the
                containing directory was remediated.
        """
        location = self._child_location(name, parent)
        kind = self._attempt(
            lambda: classify_at(location),
            self._container_of(parent),
            lambda: parent.path / name,
        )
        return Node(name, kind, parent)

    def enter(self, node: Node) -> list[str]:
        """Open a directory node and return the names of its entries.

        A directory that disappeared before it could be listed has no
        entries.

        Raises:
            RemovalError: If the directory cannot be listed even after
                remediation.
        """
        if not self._use_dir_fd:
            return self._attempt(lambda: self._scan(node.path), [node], lambda: node.path)

        location = self._child_location(node.name, node.parent)
        fd = self._attempt(lambda: self._open(location), [node], lambda: node.path)
        if fd is None:
            logger.debug("Directory vanished before listing: %s", node)
            return []

        try:
            st = os.fstat(fd)
            with os.scandir(fd) as entries:
                names = [entry.name for entry in entries]
        except OSError as e:
            os.close(fd)
            raise translate_os_error(node.path, e) from e

        if self._fd is not None:
            os.close(self._fd)
        self._fd = fd
        self._trail.append((node, st.st_dev, st.st_ino))
        return names

    def delete(self, node: Node) -> None:
        """Remove a single node; directories must already be empty.

        Files and symlinks are unlinked, directories are removed with rmdir.
        A node that disappeared in the meantime counts as removed.

        Args:
            node: Classified node to remove.

        Raises:
            RemovalError: If the node cannot be removed even after remediation.
        """
        location = self._child_location(node.name, node.parent)
        targets = [*self._container_of(node.parent), node]
        self._attempt(lambda: self._remove(node, location), targets, lambda: node.path)

    def close(self) -> None:
        """Release the open directory descriptor, if any."""
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None
        self._trail.clear()

    def _attempt(
        self,
        action: Callable[[], T],
        targets: list[Node],
        describe: Callable[[], Path],
    ) -> T:
        """Run ``action``, remediating ``targets`` and retrying once if access is denied.

        Targets that were already remediated during this removal are skipped.
        If nothing is left to remediate the first failure is final.
        ``describe`` yields the path reported in errors.
        """
        try:
            return action()
        except PermissionError as e:
            pending = [t for t in targets if t not in self._remediated]
            if not pending:
                raise translate_os_error(describe(), e) from e
            for target in pending:
                self._remediated.add(target)
                if not self._remediator.remediate(target, self._self_location(target)):
                    msg = f"Could not fix permissions of {target}"
                    raise RemovalPermissionError(describe(), msg) from e
                logger.debug("Remediated %s, retrying", target)
        except OSError as e:
            raise translate_os_error(describe(), e) from e

        try:
            return action()
        except OSError as e:
            raise translate_os_error(describe(), e) from e

    def _container_of(self, parent: Node | None) -> list[Node]:
        if parent is None or not self._remediator.remediates_container:
            return []
        return [parent]

    def _child_location(self, name: str, parent: Node | None) -> Location:
        if not self._use_dir_fd:
            return Location(parent.path / name if parent is not None else name)
        self._move_to(parent)
        if parent is None:
            return Location(name)
        return Location(name, self._fd)

    def _self_location(self, node: Node) -> Location:
        if not self._use_dir_fd:
            return Location(node.path)
        if node is self._cursor:
            return Location(self._fd)
        if node.parent is None and not self._trail:
            return Location(node.name)
        if node.parent is not None and node.parent is self._cursor:
            return Location(node.name, self._fd)
        return Location(node.path)

    def _move_to(self, directory: Node | None) -> None:
        """Climb the trail until ``directory`` is the open directory."""
        while self._cursor is not directory:
            if not self._trail:
                raise RuntimeError(f"{directory} has not been entered")
            self._up()

    def _up(self) -> None:
        node = self._trail[-1][0]
        if len(self._trail) == 1:
            self.close()
            return

        parent, dev, ino = self._trail[-2]
        fd = self._attempt(
            lambda: os.open("..", DIR_OPEN_FLAGS, dir_fd=self._fd),
            [node],
            lambda: parent.path,
        )
        try:
            st = os.fstat(fd)
        except OSError as e:
            os.close(fd)
            raise translate_os_error(parent.path, e) from e
        if (st.st_dev, st.st_ino) != (dev, ino):
            os.close(fd)
            raise RemovalIOError(parent.path, "Directory moved during removal")

        os.close(self._fd)
        self._fd = fd
        self._trail.pop()

    @staticmethod
    def _open(location: Location) -> int | None:
        try:
            return location.open_dir()
        except FileNotFoundError:
            return None

    def _remove(self, node: Node, location: Location) -> None:
        try:
            if node.kind is NodeKind.DIRECTORY:
                location.rmdir()
            else:
                location.unlink()
        except FileNotFoundError:
            logger.debug("Already gone: %s", node)
            return
        self.removed += 1

    @staticmethod
    def _scan(path: Path) -> list[str]:
        try:
            with os.scandir(path) as entries:
                return [entry.name for entry in entries]
        except FileNotFoundError:
            logger.debug("Directory vanished before listing: %s", path)
            return []
