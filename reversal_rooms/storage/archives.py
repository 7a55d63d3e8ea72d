"""ZIP archive access with an in-memory cache."""

import logging
import zipfile
from pathlib import Path
from pathlib import PurePosixPath

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".zip"


def split_archive_path(index_path: str) -> tuple[str | None, str]:
    """Split an index path at its last ``.zip`` component.

    Args:
        index_path: POSIX-style path relative to a storage root

    Returns:
        Tuple of (archive index path, path inside the archive). The archive
        part is None when no component names a ZIP archive.

    Example:
        >>> split_archive_path("mods/pack.zip/ui/module.yaml")
        ('mods/pack.zip', 'ui/module.yaml')
    """
    parts = PurePosixPath(index_path).parts
    for position in range(len(parts) - 1, -1, -1):
        if parts[position].lower().endswith(ARCHIVE_SUFFIX):
            archive = "/".join(parts[: position + 1])
            inner = "/".join(parts[position + 1 :])
            return archive, inner
    return None, index_path


class ArchiveCache:
    """Open ZIP archives keyed by their index path."""

    def __init__(self) -> None:
        self._archives: dict[str, zipfile.ZipFile] = {}
        self._replaced: list[zipfile.ZipFile] = []

    def open(self, full_path: Path, index_path: str, *, use_cache: bool = True) -> zipfile.ZipFile:
        """Return a cached archive or open it from disk.

        Raises:
            FileNotFoundError: If no file exists at ``full_path``
            zipfile.BadZipFile: If the file is not a ZIP archive
        """
        if use_cache and index_path in self._archives:
            return self._archives[index_path]

        if not full_path.is_file():
            raise FileNotFoundError(f"Archive does not exist: {full_path}")

        archive = zipfile.ZipFile(full_path, "r")
        # Entries handed out earlier may still read from a replaced archive; close it on clear()
        if index_path in self._archives:
            self._replaced.append(self._archives[index_path])
        self._archives[index_path] = archive
        logger.debug(f"Opened archive {index_path}")
        return archive

    def clear(self) -> None:
        """Close and forget every cached archive."""
        for archive in [*self._archives.values(), *self._replaced]:
            archive.close()
        self._archives.clear()
        self._replaced.clear()

    def __contains__(self, index_path: str) -> bool:
        return index_path in self._archives

    def __len__(self) -> int:
        return len(self._archives)
