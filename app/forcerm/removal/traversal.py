"""Post-order traversal of a directory tree using an explicit work stack.

The frontier of the depth-first walk lives in a plain list rather than in
nested function calls, so the depth of the tree being removed is bounded
by memory, not by the interpreter's recursion limit.
"""

import logging

from forcerm.removal.executor import DeletionExecutor
from forcerm.removal.models import Node, NodeKind, WorkItem, WorkState

logger = logging.getLogger(__name__)


def remove_tree(root: Node, executor: DeletionExecutor) -> None:
    """Remove ``root`` and everything beneath it, children before parents.

    Directories are pushed back onto the stack as CHILDREN_ENUMERATED with
    their entries pushed above them, so a directory is only removed once
    every child has been popped and resolved. The first unrecoverable error
    aborts the walk and leaves the remaining nodes in place.

    Args:
        root: Classified root node.
        executor: Executor performing every classification below the root,
            every listing and every deletion. It is closed when the walk ends.

    Raises:
        RemovalError: On the first node that cannot be removed.
    """
    stack: list[WorkItem] = [WorkItem(root.name, root.parent, WorkState.UNVISITED, root)]

    try:
        while stack:
            item = stack.pop()
            node = item.node if item.node is not None else executor.classify(item.name, item.parent)

            if node.kind is NodeKind.MISSING:
                logger.debug("Skipping vanished node %s", node)
                continue

            if node.kind is not NodeKind.DIRECTORY or item.state is WorkState.CHILDREN_ENUMERATED:
                executor.delete(node)
                continue

            names = executor.enter(node)
            stack.append(WorkItem(node.name, node.parent, WorkState.CHILDREN_ENUMERATED, node))
            stack.extend(WorkItem(name, node) for name in names)
    finally:
        executor.close()
