"""forcerm - force-remove files and directory trees.

Removes a file, directory or symlink and everything beneath it, fixing
permissions that would make ``shutil.rmtree`` give up.
"""

from forcerm.errors import (
    InvalidTargetError,
    RemovalError,
    RemovalIOError,
    RemovalPermissionError,
    TargetNotFoundError,
)
from forcerm.removal import NodeKind, RemovalOperator, classify, ensure_removed, remove

__version__ = "0.1.0"

__all__ = [
    "InvalidTargetError",
    "NodeKind",
    "RemovalError",
    "RemovalIOError",
    "RemovalOperator",
    "RemovalPermissionError",
    "TargetNotFoundError",
    "__version__",
    "classify",
    "ensure_removed",
    "remove",
]
