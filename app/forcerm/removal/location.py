"""Where a filesystem syscall is aimed.

A Location is either a path (absolute, or relative to the working
directory), a name relative to an open directory descriptor, or an open
descriptor itself. Addressing entries relative to a descriptor keeps every
syscall argument short, however deep the entry sits in the tree.
"""

import os
from dataclasses import dataclass

# Open a directory for listing without following a symlink swapped in for it.
DIR_OPEN_FLAGS = (
    os.O_RDONLY
    | getattr(os, "O_DIRECTORY", 0)
    | getattr(os, "O_NOFOLLOW", 0)
    | getattr(os, "O_CLOEXEC", 0)
)


@dataclass(frozen=True, slots=True)
class Location:
    """Target of a filesystem syscall.

    Attributes:
        target: Path or entry name, or an open descriptor of the entry itself.
        dir_fd: Descriptor of the directory ``target`` is relative to, None
            for plain paths and descriptors.
    """

    target: str | os.PathLike[str] | int
    dir_fd: int | None = None

    @property
    def is_descriptor(self) -> bool:
        return isinstance(self.target, int)

    def lstat(self) -> os.stat_result:
        """Stat the entry without following a final symlink."""
        if self.is_descriptor:
            return os.stat(self.target)
        return os.lstat(self.target, dir_fd=self.dir_fd)

    def chmod(self, mode: int, *, follow_symlinks: bool = True) -> None:
        if self.is_descriptor:
            os.chmod(self.target, mode)
        elif follow_symlinks:
            os.chmod(self.target, mode, dir_fd=self.dir_fd)
        else:
            os.chmod(self.target, mode, dir_fd=self.dir_fd, follow_symlinks=False)

    def unlink(self) -> None:
        os.unlink(self.target, dir_fd=self.dir_fd)

    def rmdir(self) -> None:
        os.rmdir(self.target, dir_fd=self.dir_fd)

    def open_dir(self) -> int:
        """Open the entry as a directory and return the new descriptor."""
        return os.open(self.target, DIR_OPEN_FLAGS, dir_fd=self.dir_fd)
