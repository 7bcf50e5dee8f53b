"""Workspace walk — builds the candidate file list for a pass."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from deepscan.scanner.globs import matches_any
from deepscan.scanner.models import FileInfo

logger = logging.getLogger(__name__)

# Binary / non-text extensions to skip
BINARY_EXTENSIONS = frozenset(
    {
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".ico",
        ".svg",
        ".woff",
        ".woff2",
        ".ttf",
        ".eot",
        ".mp3",
        ".mp4",
        ".avi",
        ".mov",
        ".pdf",
        ".zip",
        ".tar",
        ".gz",
        ".bz2",
        ".rar",
        ".7z",
        ".exe",
        ".dll",
        ".so",
        ".dylib",
        ".bin",
        ".pyc",
        ".pyo",
        ".whl",
        ".db",
        ".sqlite",
        ".sqlite3",
    }
)


def is_binary_path(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in BINARY_EXTENSIONS


@dataclass
class _Entry:
    name: str
    path: str
    is_dir: bool
    is_file: bool
    size: int | None


def _list_dir(directory: str) -> list[_Entry]:
    """Blocking listing of one directory; file sizes are stat'ed here too."""
    entries = []
    with os.scandir(directory) as it:
        for entry in it:
            is_dir = entry.is_dir(follow_symlinks=False)
            is_file = entry.is_file(follow_symlinks=False)
            size = None
            if is_file:
                try:
                    size = entry.stat(follow_symlinks=False).st_size
                except OSError as e:
                    logger.debug("Skipping %s: %s", entry.path, e)
            entries.append(_Entry(entry.name, entry.path, is_dir, is_file, size))
    entries.sort(key=lambda e: e.name)
    return entries


class WorkspaceWalker:
    """Recursively collects scannable files under a workspace root.

    Entries matching an exclude glob, binary extensions, files larger than
    ``max_file_size`` and unreadable entries are skipped.
    """

    def __init__(
        self,
        root: str | Path,
        exclude_patterns: list[str] | tuple[str, ...] = (),
        max_file_size: int | None = None,
    ) -> None:
        self.root = os.path.abspath(root)
        self.exclude_patterns = tuple(exclude_patterns)
        self.max_file_size = max_file_size

    async def walk(self) -> list[FileInfo]:
        files: list[FileInfo] = []
        await self._walk_directory(self.root, files)
        return files

    async def _walk_directory(self, directory: str, files: list[FileInfo]) -> None:
        try:
            entries = await asyncio.to_thread(_list_dir, directory)
        except OSError as e:
            logger.debug("Skipping directory %s: %s", directory, e)
            return

        for entry in entries:
            relative = Path(os.path.relpath(entry.path, self.root)).as_posix()
            if self.exclude_patterns and matches_any(relative, self.exclude_patterns):
                continue

            if entry.is_dir:
                await self._walk_directory(entry.path, files)
                continue
            if not entry.is_file or entry.size is None:
                continue
            if is_binary_path(entry.name):
                continue
            if self.max_file_size and entry.size > self.max_file_size:
                continue

            files.append(
                FileInfo(
                    path=relative,
                    absolute_path=entry.path,
                    extension=os.path.splitext(entry.name)[1].lower(),
                    size=entry.size,
                    is_binary=False,
                )
            )


async def load_content(file: FileInfo) -> str:
    """Read a file's text off the event loop."""
    return await asyncio.to_thread(
        Path(file.absolute_path).read_text, encoding="utf-8", errors="ignore"
    )
