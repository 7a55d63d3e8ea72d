"""Pytest configuration and shared fixtures for reversal-rooms tests."""

import zipfile
from pathlib import Path
from textwrap import dedent

import pytest
from semantic_version import Version

from reversal_rooms.modules import DependencyRequirement
from reversal_rooms.modules import ModuleDescriptor


@pytest.fixture
def make_module():
    """Factory for descriptors: make_module("a", "1.0.0", requires=[("b", "1.0.0")])."""

    def _make(module_id: str, version: str = "1.0.0", requires=(), **fields) -> ModuleDescriptor:
        return ModuleDescriptor(
            id=module_id,
            display_name=fields.pop("display_name", module_id.title()),
            description=fields.pop("description", ""),
            author=fields.pop("author", "tester"),
            version=Version(version),
            location=fields.pop("location", f"/mods/{module_id}"),
            dependencies=tuple(DependencyRequirement(target, Version(minimum)) for target, minimum in requires),
            **fields,
        )

    return _make


def manifest_text(module_id: str, version: str = "1.0.0", requires=()) -> str:
    lines = [f"id: {module_id}", f"display_name: {module_id.title()}", f"version: {version}"]
    if requires:
        lines.append("dependencies:")
        for target, minimum in requires:
            lines.append(f"  - id: {target}")
            lines.append(f"    version: {minimum}")
    return "\n".join(lines) + "\n"


@pytest.fixture
def write_module():
    """Write a module.yaml into ``<base>/<folder>/module.yaml``."""

    def _write(base: Path, folder: str, module_id: str, version: str = "1.0.0", requires=()) -> Path:
        module_dir = base / folder
        module_dir.mkdir(parents=True, exist_ok=True)
        manifest = module_dir / "module.yaml"
        manifest.write_text(manifest_text(module_id, version, requires))
        return manifest

    return _write


@pytest.fixture
def write_archive():
    """Write a ZIP archive from a {entry name: text} mapping."""

    def _write(path: Path, entries: dict[str, str]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w") as archive:
            for name, text in entries.items():
                archive.writestr(name, dedent(text))
        return path

    return _write


@pytest.fixture
def manifest():
    """Render module.yaml text for archive entries."""
    return manifest_text
