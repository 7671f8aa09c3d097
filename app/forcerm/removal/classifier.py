"""Path classification without following symbolic links."""

import os
import stat

from forcerm.removal.location import Location
from forcerm.removal.models import NodeKind


def classify(path: str | os.PathLike[str]) -> NodeKind:
    """Classify a path as file, directory, symlink or missing.

    Uses ``lstat`` so a symlink is reported as SYMLINK whatever it points to.
    A missing path is a valid classification, not an error.

    Args:
        path: Path to inspect.

    Returns:
        NodeKind of the entry at ``path``.

    Raises:
        OSError: If the metadata query fails for another reason, e.g. the
            containing directory is not searchable.
    """
    return classify_at(Location(os.fspath(path)))


def classify_at(location: Location) -> NodeKind:
    """Classify the entry at ``location``; see classify()."""
    try:
        st = location.lstat()
    except (FileNotFoundError, NotADirectoryError):
        return NodeKind.MISSING
    return kind_of(st)


def kind_of(st: os.stat_result) -> NodeKind:
    """Map lstat results onto a NodeKind.

    Windows junctions stat as directories but are links to another
    directory; they are reported as SYMLINK so their targets are never
    traversed.
    """
    if stat.S_ISLNK(st.st_mode):
        return NodeKind.SYMLINK
    if stat.S_ISDIR(st.st_mode):
        if getattr(st, "st_reparse_tag", 0) == stat.IO_REPARSE_TAG_MOUNT_POINT:
            return NodeKind.SYMLINK
        return NodeKind.DIRECTORY
    return NodeKind.FILE
