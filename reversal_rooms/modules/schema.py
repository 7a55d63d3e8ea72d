"""Pydantic schema for module metadata documents (``module.yaml``)."""

from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from semantic_version import Version

from .models import DependencyRequirement
from .models import ModuleDescriptor
from .versions import parse_version


class DependencyManifest(BaseModel):
    """One entry of a module's ``dependencies`` list."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(..., min_length=1, description="Identity of the required module")
    version: Version = Field(default=Version("0.0.0"), description="Minimum required version")

    @field_validator("version", mode="before")
    @classmethod
    def _parse_version(cls, value: Any) -> Version:
        return parse_version(value)

    def to_requirement(self) -> DependencyRequirement:
        return DependencyRequirement(target=self.id, minimum=self.version)


class ModuleManifest(BaseModel):
    """Module metadata as written by module authors."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(..., min_length=1, description="Unique module identity")
    display_name: str | None = Field(None, description="Name shown on UIs (defaults to the identity)")
    description: str = Field("", description="Short description")
    author: str = Field("", description="Author(s) of the module")
    website: str | None = Field(None, description="Link to the module's homepage or repository")
    version: Version = Field(..., description="Semantic version (e.g. '1.0.0')")
    entry: str | None = Field(None, description="Path to the module's code, relative to its directory")
    dependencies: list[DependencyManifest] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def _parse_version(cls, value: Any) -> Version:
        return parse_version(value)

    @field_validator("description", "author", mode="before")
    @classmethod
    def _blank_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("dependencies", mode="before")
    @classmethod
    def _default_dependencies(cls, value: Any) -> Any:
        # "dependencies:" with nothing after it parses as None
        return [] if value is None else value

    def to_descriptor(self, location: str) -> ModuleDescriptor:
        return ModuleDescriptor(
            id=self.id,
            display_name=self.display_name or self.id,
            description=self.description,
            author=self.author,
            website=self.website,
            version=self.version,
            location=location,
            entry=self.entry,
            dependencies=tuple(dependency.to_requirement() for dependency in self.dependencies),
        )
