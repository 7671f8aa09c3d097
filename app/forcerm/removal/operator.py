"""Removal operator: the public entry points of the removal engine.

Classifies the root, then hands it to the traversal with a fresh executor.
``remove`` fails when the root does not exist; ``ensure_removed`` treats a
missing root as already done.
"""

import logging
import os
from pathlib import Path

from forcerm.errors import InvalidTargetError, TargetNotFoundError, translate_os_error
from forcerm.removal.classifier import classify
from forcerm.removal.executor import DeletionExecutor
from forcerm.removal.models import Node, NodeKind
from forcerm.removal.remediator import PlatformRemediator, Remediator
from forcerm.removal.traversal import remove_tree

logger = logging.getLogger(__name__)

# Names that refer to a directory relative to itself rather than to an entry.
SELF_REFERENCES = frozenset({os.curdir, os.pardir})


class RemovalOperator:
    """Force-removes files, directories and symlinks with all descendants.

    In contrast to ``shutil.rmtree``, directories lacking read or execute
    permission are removed on POSIX systems, read-only entries are removed
    on Windows, and tree depth is limited neither by the recursion limit
    nor, where descriptor-relative syscalls exist, by the maximum path
    length.

    Attributes:
        _remediator: Remediator used on access-control failures.
    """

    def __init__(self, *, remediator: Remediator | None = None) -> None:
        """Initialize the RemovalOperator.

        Args:
            remediator: Remediator to use instead of the platform's one.
        """
        self._remediator = remediator or PlatformRemediator()

    def remove(self, path: str | os.PathLike[str]) -> None:
        """Remove everything at ``path``.

        Args:
            path: File, directory or symlink to remove.

        Raises:
            TargetNotFoundError: If nothing exists at ``path``.
            InvalidTargetError: If ``path`` is empty, a filesystem root, or
                ends in ``.`` or ``..``.
            RemovalPermissionError: If a node stays inaccessible after
                remediation.
            RemovalIOError: On any other OS-level failure.
        """
        root = self._classify_root(path)
        if root.kind is NodeKind.MISSING:
            raise TargetNotFoundError(root.name)
        self._remove_root(root)

    def ensure_removed(self, path: str | os.PathLike[str]) -> None:
        """Make sure nothing exists at ``path``.

        Same as remove(), but a missing root is success.
        """
        root = self._classify_root(path)
        if root.kind is NodeKind.MISSING:
            logger.debug("Nothing to remove at %s", root)
            return
        self._remove_root(root)

    def _classify_root(self, path: str | os.PathLike[str]) -> Node:
        raw = os.fspath(path)
        if not raw:
            raise InvalidTargetError(raw, "Empty path cannot be removed")
        stripped = raw.rstrip(os.sep + (os.altsep or ""))
        if not stripped or os.path.splitdrive(stripped)[1] == "":
            raise InvalidTargetError(raw, "Refusing to remove a filesystem root")
        if os.path.basename(stripped) in SELF_REFERENCES:
            raise InvalidTargetError(raw, "Refusing to remove '.' or '..'")

        name = os.fspath(Path(raw))
        try:
            return Node(name, classify(name))
        except OSError as e:
            raise translate_os_error(name, e) from e

    def _remove_root(self, root: Node) -> None:
        executor = DeletionExecutor(self._remediator)
        remove_tree(root, executor)
        logger.info("Removed %s (%d entries)", root, executor.removed)


def remove(path: str | os.PathLike[str]) -> None:
    """Remove everything at ``path``; fail if it does not exist.

    Args:
        path: File, directory or symlink to remove.

    Raises:
        TargetNotFoundError: If nothing exists at ``path``.
        RemovalError: If any node cannot be removed.
    """
    RemovalOperator().remove(path)


def ensure_removed(path: str | os.PathLike[str]) -> None:
    """Remove everything at ``path``; a missing path is success.

    Args:
        path: File, directory or symlink to remove.

    Raises:
        RemovalError: If any node cannot be removed.
    """
    RemovalOperator().ensure_removed(path)
