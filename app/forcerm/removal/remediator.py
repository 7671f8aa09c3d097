"""Permission remediation after access-control failures.

A remediator adjusts the permission metadata of a single node so that a
pending deletion or directory listing can be retried once. Two variants
exist, one per platform family; PlatformRemediator is bound once at import
time to the one matching the running interpreter.
"""

import logging
import os
import stat
import sys
from abc import ABC, abstractmethod

from forcerm.removal.location import Location
from forcerm.removal.models import Node, NodeKind

logger = logging.getLogger(__name__)


class Remediator(ABC):
    """Abstract base class for permission remediators.

    Attributes:
        remediates_container: Whether deleting an entry is governed by the
            permissions of the directory containing it, so that directory is
            a remediation target too.

    Example:
        >>> remediator = PlatformRemediator()
        >>> if remediator.remediate(Node("locked", NodeKind.DIRECTORY)):
        ...     os.rmdir("locked")
    """

    remediates_container: bool = False

    @abstractmethod
    def remediate(self, node: Node, at: Location | None = None) -> bool:
        """Adjust permissions of ``node`` so a retried operation may succeed.

        Args:
            node: Classified node the operation failed on.
            at: Where to reach the node. Defaults to its full path.

        Returns:
            True if the permission change was applied, False if the change
            itself failed. A False result is final; callers do not retry.
        """


class PosixRemediator(Remediator):
    """Adds the owner permission bits needed to list or delete a node.

    Directories get owner read, write and execute (list entries, enter,
    remove entries). Files get owner write. Symlinks are left alone:
    ``chmod`` would follow the link, and link permissions are unused on
    POSIX systems.
    """

    remediates_container = True
    DIRECTORY_BITS = stat.S_IRWXU
    FILE_BITS = stat.S_IWUSR

    def remediate(self, node: Node, at: Location | None = None) -> bool:
        if node.kind is NodeKind.SYMLINK:
            return True
        if node.kind is NodeKind.MISSING:
            return False

        at = at or Location(node.path)
        bits = self.DIRECTORY_BITS if node.kind is NodeKind.DIRECTORY else self.FILE_BITS
        try:
            mode = stat.S_IMODE(at.lstat().st_mode)
            if mode & bits == bits:
                return True
            at.chmod(mode | bits)
        except OSError as e:
            logger.warning("Could not fix permissions of %s: %s", node, e)
            return False

        logger.debug("Added mode bits %o to %s", bits, node)
        return True


class WindowsRemediator(Remediator):
    """Clears the read-only attribute of a node.

    Links are changed without following them. Interpreters that cannot do
    that (Windows before Python 3.13) leave read-only links unremediated.
    """

    def remediate(self, node: Node, at: Location | None = None) -> bool:
        if node.kind is NodeKind.MISSING:
            return False

        follow = node.kind is not NodeKind.SYMLINK
        if not follow and os.chmod not in os.supports_follow_symlinks:
            logger.warning(
                "Cannot clear read-only attribute of link %s on this interpreter", node
            )
            return False

        at = at or Location(node.path)
        try:
            at.chmod(stat.S_IWRITE, follow_symlinks=follow)
        except OSError as e:
            logger.warning("Could not clear read-only attribute of %s: %s", node, e)
            return False

        logger.debug("Cleared read-only attribute of %s", node)
        return True


PlatformRemediator: type[Remediator] = (
    WindowsRemediator if sys.platform == "win32" else PosixRemediator
)
