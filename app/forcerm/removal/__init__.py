"""Forced recursive removal engine.

This module provides path classification, permission remediation,
post-order traversal and deletion for the removal domain.
"""

from forcerm.removal.classifier import classify
from forcerm.removal.executor import DIR_FD_SUPPORTED, DeletionExecutor
from forcerm.removal.location import Location
from forcerm.removal.models import Node, NodeKind, WorkItem, WorkState
from forcerm.removal.operator import RemovalOperator, ensure_removed, remove
from forcerm.removal.remediator import (
    PlatformRemediator,
    PosixRemediator,
    Remediator,
    WindowsRemediator,
)
from forcerm.removal.traversal import remove_tree

__all__ = [
    "DIR_FD_SUPPORTED",
    "DeletionExecutor",
    "Location",
    "Node",
    "NodeKind",
    "PlatformRemediator",
    "PosixRemediator",
    "RemovalOperator",
    "Remediator",
    "WindowsRemediator",
    "WorkItem",
    "WorkState",
    "classify",
    "ensure_removed",
    "remove",
    "remove_tree",
]
