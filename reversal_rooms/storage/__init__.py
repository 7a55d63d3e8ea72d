"""Root-relative storage over plain directories and ZIP archives."""

from .archives import ArchiveCache
from .archives import split_archive_path
from .filesystem import FileEntry
from .filesystem import FileSystem
from .filesystem import NormalizedPath
from .filesystem import PathOutsideRootError
from .filesystem import normalize_relative_path

__all__ = [
    "ArchiveCache",
    "FileEntry",
    "FileSystem",
    "NormalizedPath",
    "PathOutsideRootError",
    "normalize_relative_path",
    "split_archive_path",
]
