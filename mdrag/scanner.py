"""Recursive discovery of source text files."""
import logging
import os
from dataclasses import dataclass
from typing import Iterable, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """A text file read from disk"""
    absolute_path: str
    file_name: str
    modified_time: int
    content: str


class FileScanner:
    """Finds files with the given extensions below a folder and reads them."""

    def __init__(self, extensions: Iterable[str] = (".md",)):
        self.extensions = tuple(ext.lower() for ext in extensions)

    def _matches(self, file_name: str) -> bool:
        return os.path.splitext(file_name)[1].lower() in self.extensions

    def scan_directory(self, folder: str) -> List[SourceFile]:
        """
        Recursively read every matching file.

        Args:
            folder: Directory to scan

        Returns:
            Source files in sorted path order; unreadable files are skipped
        """
        folder = os.path.abspath(folder)
        if not os.path.isdir(folder):
            raise NotADirectoryError(f"'{folder}' is not a directory")

        logger.info("Scanning directory: %s", folder)
        files = []
        for root, dirs, names in os.walk(folder):
            dirs.sort()
            for name in sorted(names):
                if not self._matches(name):
                    continue
                path = os.path.join(root, name)
                try:
                    with open(path, "r", encoding="utf-8") as f:
                        content = f.read()
                    modified = int(os.path.getmtime(path) * 1000)
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning("Failed to read file %s: %s", path, e)
                    continue
                files.append(SourceFile(
                    absolute_path=path,
                    file_name=name,
                    modified_time=modified,
                    content=content
                ))

        logger.info("Found %d matching files", len(files))
        return files
