"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import os
import sys
from pathlib import Path

import pytest

IS_WINDOWS = sys.platform == "win32"
IS_ROOT = hasattr(os, "geteuid") and os.geteuid() == 0

posix_only = pytest.mark.skipif(IS_WINDOWS, reason="POSIX permission bits required")
needs_unprivileged = pytest.mark.skipif(
    IS_WINDOWS or IS_ROOT,
    reason="permission checks are bypassed for root and differ on Windows",
)


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Small tree with nested directories, files and an inner symlink.

    Layout::

        target/
            a.txt
            sub/
                b.txt
                deeper/
                    c.txt
            link -> ../outside.txt
        outside.txt
    """
    outside = tmp_path / "outside.txt"
    outside.write_text("keep me")

    root = tmp_path / "target"
    (root / "sub" / "deeper").mkdir(parents=True)
    (root / "a.txt").write_text("a")
    (root / "sub" / "b.txt").write_text("b")
    (root / "sub" / "deeper" / "c.txt").write_text("c")
    if not IS_WINDOWS:
        (root / "link").symlink_to(outside)
    return root


@pytest.fixture
def restore_permissions(tmp_path: Path):
    """Give the owner full access to everything under tmp_path on teardown.

    Lets tests leave locked-down leftovers behind without breaking cleanup.
    """
    yield
    for dirpath, dirnames, filenames in os.walk(tmp_path):
        for name in dirnames + filenames:
            entry = Path(dirpath) / name
            if not entry.is_symlink():
                os.chmod(entry, 0o700)


def make_deep_chain(base: Path, depth: int) -> Path:
    """Create ``depth`` directories named ``d`` nested inside each other under ``base``.

    Each level is created relative to the working directory, so the chain
    can grow past the platform's maximum path length.

    Returns:
        The outermost directory of the chain.
    """
    saved = os.getcwd()
    os.chdir(base)
    try:
        for _ in range(depth):
            os.mkdir("d")
            os.chdir("d")
    finally:
        os.chdir(saved)
    return base / "d"
