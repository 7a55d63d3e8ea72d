"""Root-relative file access over plain directories and ZIP archives.

Every path is resolved against a storage root and rejected if it escapes
that root. A path that runs through a ``.zip`` component is looked up
inside the archive when no plain file or directory exists there, so
``Modules/pack.zip/ui/module.yaml`` reads the ``ui/module.yaml`` entry of
``Modules/pack.zip``.
"""

import logging
import os
import zipfile
from collections.abc import Callable
from collections.abc import Iterator
from dataclasses import dataclass
from dataclasses import field
from functools import partial
from pathlib import Path
from pathlib import PurePosixPath
from typing import BinaryIO

from .archives import ArchiveCache
from .archives import split_archive_path

logger = logging.getLogger(__name__)


class PathOutsideRootError(ValueError):
    """A path resolved to a location outside its storage root."""

    def __init__(self, path: str, root: Path):
        self.path = path
        self.root = root
        super().__init__(f"Path '{path}' is not inside {root}")


@dataclass(frozen=True)
class NormalizedPath:
    """A validated path.

    Attributes:
        full_path: Absolute path on disk (may point into an archive)
        index_path: POSIX-style path relative to the root, "." for the root
    """

    full_path: Path
    index_path: str


def normalize_relative_path(root: Path | str, path: Path | str) -> NormalizedPath:
    """Normalize and validate a path relative to a root.

    Leading separators are dropped, so "/Saves" means "Saves" under the
    root rather than the filesystem root. ``..`` segments are collapsed
    lexically; symlinks are not followed.

    Args:
        root: Root directory the path must stay within
        path: Path to normalize

    Returns:
        NormalizedPath with absolute and root-relative forms

    Raises:
        PathOutsideRootError: If the path escapes the root
    """
    root_path = Path(os.path.abspath(root))
    text = str(path).replace("\\", "/").lstrip("/") or "."

    full_path = Path(os.path.normpath(root_path / text))
    if full_path != root_path and root_path not in full_path.parents:
        raise PathOutsideRootError(str(path), root_path)

    if full_path == root_path:
        return NormalizedPath(full_path, ".")
    return NormalizedPath(full_path, full_path.relative_to(root_path).as_posix())


@dataclass(frozen=True)
class FileEntry:
    """A readable file, either on disk or inside an archive.

    Attributes:
        name: File name including extension
        path: Full path (archive entries live below the archive's path)
        index_path: POSIX-style path relative to the storage root
    """

    name: str
    path: Path
    index_path: str
    opener: Callable[[], BinaryIO] = field(repr=False, compare=False)

    def open(self) -> BinaryIO:
        return self.opener()

    def read_bytes(self) -> bytes:
        with self.open() as stream:
            return stream.read()

    def read_text(self, encoding: str = "utf-8") -> str:
        return self.read_bytes().decode(encoding)


def _normalize_extension(extension: str) -> str:
    """Turn "*", "yaml" or ".yaml" into a lowercase suffix ("" matches all)."""
    if not extension or extension == "*":
        return ""
    extension = extension.lower()
    return extension if extension.startswith(".") else f".{extension}"


class FileSystem:
    """File access rooted at one directory.

    Archives opened through this instance are cached until
    ``clear_archive_cache()`` or ``close()``.
    """

    def __init__(self, root: Path | str) -> None:
        """Initialize file system.

        Args:
            root: Directory all paths are resolved against
        """
        self.root = Path(os.path.abspath(root))
        self._archives = ArchiveCache()

    def normalize(self, path: Path | str) -> NormalizedPath:
        return normalize_relative_path(self.root, path)

    # ===== ARCHIVES =====

    def get_archive(self, path: Path | str, use_cache: bool = True) -> zipfile.ZipFile:
        """Get a ZIP archive, from cache if allowed.

        Raises:
            FileNotFoundError: If no file exists at the path
            zipfile.BadZipFile: If the file is not a ZIP archive
        """
        normalized = self.normalize(path)
        return self._archives.open(normalized.full_path, normalized.index_path, use_cache=use_cache)

    def try_get_archive(self, path: Path | str, use_cache: bool = True) -> zipfile.ZipFile | None:
        """Like get_archive, but returns None when the archive is missing or unreadable."""
        try:
            return self.get_archive(path, use_cache)
        except (FileNotFoundError, zipfile.BadZipFile) as e:
            logger.debug(f"Archive {path} unavailable: {e}")
            return None

    def clear_archive_cache(self) -> None:
        self._archives.clear()

    def close(self) -> None:
        self.clear_archive_cache()

    def __enter__(self) -> "FileSystem":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ===== FILES =====

    def read_file(self, path: Path | str) -> FileEntry:
        """Locate a file on disk or inside an archive.

        Raises:
            FileNotFoundError: If the file (or its archive) does not exist
        """
        normalized = self.normalize(path)
        full_path = normalized.full_path
        if full_path.is_file():
            return FileEntry(full_path.name, full_path, normalized.index_path, partial(full_path.open, "rb"))

        archive_index, inner = split_archive_path(normalized.index_path)
        if archive_index is None or not inner:
            raise FileNotFoundError(f"File does not exist: {full_path}")

        archive = self.try_get_archive(archive_index)
        if archive is None:
            raise FileNotFoundError(f"Archive does not exist: {self.root / archive_index}")

        try:
            info = archive.getinfo(inner)
        except KeyError:
            raise FileNotFoundError(f"File '{inner}' does not exist in archive {archive_index}") from None
        return self._archive_entry(archive, archive_index, info)

    # ===== DIRECTORIES =====

    def enumerate_files(
        self,
        directory: Path | str = ".",
        recursive: bool = False,
        extension: str = "*",
    ) -> Iterator[FileEntry]:
        """Enumerate files in a directory or a directory inside an archive.

        Args:
            directory: Directory to enumerate, relative to the root
            recursive: Include files in subdirectories
            extension: Only yield files with this extension ("*" for all)

        Yields:
            FileEntry for each matching file, sorted by path

        Raises:
            FileNotFoundError: If neither a directory nor an archive exists at the path
        """
        normalized = self.normalize(directory)
        suffix = _normalize_extension(extension)

        if normalized.full_path.is_dir():
            pattern = "**/*" if recursive else "*"
            for candidate in sorted(normalized.full_path.glob(pattern)):
                if candidate.is_file() and candidate.name.lower().endswith(suffix):
                    index_path = candidate.relative_to(self.root).as_posix()
                    yield FileEntry(candidate.name, candidate, index_path, partial(candidate.open, "rb"))
            return

        archive_index, inner = split_archive_path(normalized.index_path)
        if archive_index is None:
            raise FileNotFoundError(f"Directory does not exist: {normalized.full_path}")

        archive = self.try_get_archive(archive_index)
        if archive is None:
            raise FileNotFoundError(f"Archive does not exist: {self.root / archive_index}")

        prefix = f"{inner}/" if inner else ""
        for info in sorted(archive.infolist(), key=lambda i: i.filename):
            if info.is_dir() or not info.filename.startswith(prefix):
                continue
            relative = info.filename[len(prefix) :]
            if not recursive and "/" in relative:
                continue
            if PurePosixPath(relative).name.lower().endswith(suffix):
                yield self._archive_entry(archive, archive_index, info)

    def _archive_entry(self, archive: zipfile.ZipFile, archive_index: str, info: zipfile.ZipInfo) -> FileEntry:
        entry_path = PurePosixPath(info.filename)
        return FileEntry(
            name=entry_path.name,
            path=self.root / archive_index / entry_path,
            index_path=f"{archive_index}/{info.filename}",
            opener=partial(archive.open, info),
        )
