"""Removal domain models.

This module defines the data structures the removal engine works with:
the classified kind of a filesystem node, and the work items that make up
the explicit traversal stack.

Nodes form a chain of parent links instead of carrying full paths, so a
node costs the same at any depth. Equality is identity and parents are left
out of repr, which keeps both O(1) on chains of any length.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class NodeKind(str, Enum):
    """Kind of a filesystem node, determined without following symlinks.

    Attributes:
        FILE: Regular file, or any other non-directory, non-link entry
            (FIFO, socket, device node).
        DIRECTORY: Real directory (not a symlink or junction to one).
        SYMLINK: Symbolic link or junction, dangling or not.
        MISSING: Nothing exists at the path.
    """

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    MISSING = "missing"


class WorkState(str, Enum):
    """Traversal state of a work item.

    Attributes:
        UNVISITED: The node has not been classified or processed yet.
        CHILDREN_ENUMERATED: The node is a directory whose children have
            been pushed above it on the stack.
    """

    UNVISITED = "unvisited"
    CHILDREN_ENUMERATED = "children_enumerated"


@dataclass(frozen=True, slots=True, eq=False)
class Node:
    """A directory entry together with its classified kind.

    Nodes are computed on demand and never cached across passes, since the
    tree may be modified by other processes while it is being removed.

    Attributes:
        name: Entry name inside ``parent``; for the root, the path as given.
        kind: Classification of the entry at the time it was inspected.
        parent: Directory node containing this entry, None for the root.
    """

    name: str
    kind: NodeKind
    parent: "Node | None" = field(default=None, repr=False)

    @property
    def path(self) -> Path:
        """Full path of the node, built by walking up to the root."""
        names = []
        node: Node | None = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        return Path(*reversed(names))

    def __str__(self) -> str:
        return os.fspath(self.path)


@dataclass(frozen=True, slots=True, eq=False)
class WorkItem:
    """Entry of the traversal stack.

    Attributes:
        name: Entry name inside ``parent``.
        parent: Directory node containing the entry, None for the root.
        state: Where the traversal is for this entry.
        node: Node already classified for the entry, None if it still needs
            classification.
    """

    name: str
    parent: Node | None = field(default=None, repr=False)
    state: WorkState = WorkState.UNVISITED
    node: Node | None = field(default=None, repr=False)
