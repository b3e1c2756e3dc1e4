"""
File-system service used by the assembler and the builder.
"""

import logging
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryEntry:
    """An immediate child of a directory."""

    name: str
    path: Path
    is_directory: bool


class FileSystem(ABC):
    """Directory operations the pipeline needs."""

    @abstractmethod
    def copy_tree(self, source: Path, destination: Path) -> None:
        """Recursively copy ``source`` to ``destination``."""
        pass

    @abstractmethod
    def remove_tree(self, path: Path) -> None:
        """Recursively delete ``path``. A missing path is not an error."""
        pass

    @abstractmethod
    def list_children(self, path: Path) -> list[DirectoryEntry]:
        """List the immediate children of ``path``, sorted by name."""
        pass


class LocalFileSystem(FileSystem):
    """FileSystem backed by shutil and pathlib."""

    def copy_tree(self, source: Path, destination: Path) -> None:
        # symlinks=True keeps the Versions/Current layout of macOS frameworks intact
        shutil.copytree(source, destination, symlinks=True)

    def remove_tree(self, path: Path) -> None:
        if path.is_symlink() or path.is_file():
            path.unlink()
        elif path.exists():
            shutil.rmtree(path)

    def list_children(self, path: Path) -> list[DirectoryEntry]:
        return [
            DirectoryEntry(name=child.name, path=child, is_directory=child.is_dir())
            for child in sorted(path.iterdir())
        ]


def remove_best_effort(fs: FileSystem, path: Path) -> bool:
    """
    Delete ``path`` without letting a failure escape.

    Failures are logged rather than raised so they never mask the error that
    triggered the cleanup.

    Returns:
        True if the path is gone afterwards
    """
    try:
        fs.remove_tree(path)
        return True
    except OSError as e:
        logger.warning(f"Could not remove {path}: {e}")
        return False
