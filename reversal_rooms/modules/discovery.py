"""Module metadata discovery.

Finds ``module.yaml`` documents below a modules directory, in plain
subdirectories and inside ZIP archives, and turns the valid ones into
descriptors. Invalid documents are reported and never reach the resolver.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..storage import FileEntry
from ..storage import FileSystem
from ..storage import split_archive_path
from ..utils.yaml_io import load_yaml
from .errors import ManifestError
from .models import ModuleDescriptor
from .schema import ModuleManifest

logger = logging.getLogger(__name__)

MANIFEST_NAME = "module.yaml"


@dataclass
class SkippedManifest:
    """A metadata document that could not be used."""

    path: str
    reason: str


@dataclass
class DiscoveryReport:
    """Result of scanning a modules directory."""

    descriptors: list[ModuleDescriptor] = field(default_factory=list)
    skipped: list[SkippedManifest] = field(default_factory=list)


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "document"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def parse_manifest(entry: FileEntry) -> ModuleDescriptor:
    """Parse one metadata document into a descriptor.

    The descriptor's location is the directory holding the document.

    Raises:
        ManifestError: If the document is not valid YAML or fails validation
    """
    try:
        data = load_yaml(entry.read_bytes(), floats_as_text=True)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise ManifestError(str(entry.path), f"unreadable YAML: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(str(entry.path), "expected a mapping at the top level")

    try:
        manifest = ModuleManifest.model_validate(data)
    except ValidationError as e:
        raise ManifestError(str(entry.path), _format_validation_error(e)) from e

    return manifest.to_descriptor(location=str(Path(entry.path).parent))


def iter_manifests(filesystem: FileSystem, directory: Path | str = ".") -> Iterator[FileEntry]:
    """Yield every ``module.yaml`` below ``directory``, archives included."""
    for entry in filesystem.enumerate_files(directory, recursive=True, extension="yaml"):
        if entry.name.lower() == MANIFEST_NAME:
            yield entry

    # Nested archives are not supported, so only scan for them on disk
    archive_index, _ = split_archive_path(filesystem.normalize(directory).index_path)
    if archive_index is not None:
        return

    for archive in filesystem.enumerate_files(directory, recursive=True, extension="zip"):
        if filesystem.try_get_archive(archive.index_path) is None:
            logger.warning(f"Skipping unreadable archive {archive.path}")
            continue
        for entry in filesystem.enumerate_files(archive.index_path, recursive=True, extension="yaml"):
            if entry.name.lower() == MANIFEST_NAME:
                yield entry


def discover_modules(filesystem: FileSystem, directory: Path | str = ".") -> DiscoveryReport:
    """Scan a modules directory for module metadata.

    Args:
        filesystem: Storage rooted where ``directory`` is resolved
        directory: Modules directory (or archive) relative to the root

    Returns:
        DiscoveryReport with valid descriptors in discovery order and the skipped documents

    Raises:
        FileNotFoundError: If the modules directory does not exist
    """
    report = DiscoveryReport()
    for entry in iter_manifests(filesystem, directory):
        try:
            descriptor = parse_manifest(entry)
        except ManifestError as e:
            logger.warning(str(e), extra={"event": "modules.manifest_skipped"})
            report.skipped.append(SkippedManifest(path=e.path, reason=e.reason))
            continue
        logger.debug(f"Discovered {descriptor} at {descriptor.location}")
        report.descriptors.append(descriptor)
    return report
