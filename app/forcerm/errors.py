"""Exception hierarchy for forced removal.

Every failure surfaced by the removal engine is a RemovalError carrying the
path of the node that could not be handled. The original OSError, when there
is one, is chained as ``__cause__``.
"""

import errno
import os

# Windows reports a file held open by another process as access denied.
SHARING_VIOLATION_WINERRORS = frozenset({32, 33})


class RemovalError(Exception):
    """Base exception for removal failures.

    Attributes:
        path: Path of the node that failed.
        message: Human-readable description of the failure.
    """

    def __init__(self, path: str | os.PathLike[str], message: str) -> None:
        self.path = os.fspath(path)
        self.message = message
        super().__init__(f"{message}: {self.path}")


class TargetNotFoundError(RemovalError):
    """Raised when the root path to remove does not exist."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        super().__init__(path, "Path not found")


class InvalidTargetError(RemovalError):
    """Raised when the given path cannot name a removable entry."""


class RemovalPermissionError(RemovalError):
    """Raised when access is still denied after remediation, or remediation failed."""


class RemovalIOError(RemovalError):
    """Raised for any other OS-level failure.

    Attributes:
        errno: The errno of the underlying OSError, None if unknown.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        message: str,
        errno: int | None = None,
    ) -> None:
        self.errno = errno
        super().__init__(path, message)


def translate_os_error(path: str | os.PathLike[str], exc: OSError) -> RemovalError:
    """Map an OSError raised for ``path`` onto the removal error hierarchy.

    Args:
        path: Path of the node the operation was applied to.
        exc: The error raised by the operating system.

    Returns:
        A RemovalError subclass instance. The caller is expected to raise it
        ``from exc``.
    """
    reason = exc.strerror or str(exc)
    if isinstance(exc, FileNotFoundError):
        return TargetNotFoundError(path)
    if getattr(exc, "winerror", None) in SHARING_VIOLATION_WINERRORS:
        return RemovalIOError(path, reason, errno=exc.errno)
    if isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
        return RemovalPermissionError(path, reason)
    return RemovalIOError(path, reason, errno=exc.errno)
