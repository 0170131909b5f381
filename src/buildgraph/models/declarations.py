"""Package declarations with Pydantic v2 validation.

A declaration is what a build-description loader hands over for each
package: identity, defining files, and the ordered list of requirements
by logical name.
"""

from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    model_validator,
)

from .dependency import Requirement
from .package import DefiningFile, PackageType, SourceLocation


def strip_whitespace(v: Any) -> Any:
    """
    Strip whitespace from string fields.

    Hand-written manifests often carry stray spaces around names:
    - "unix " would never match a provider named "unix"
    - "" becomes None so that required fields fail validation

    Args:
        v: The value to process.

    Returns:
        Any: The processed value with whitespace stripped.
    """
    if isinstance(v, str):
        stripped = v.strip()
        return stripped or None
    return v


Name = Annotated[str, BeforeValidator(strip_whitespace)]
OptionalName = Annotated[str | None, BeforeValidator(strip_whitespace)]


class RequirementDeclaration(BaseModel):
    """One requirement, by logical name."""

    model_config = ConfigDict(extra="forbid")

    name: Name = Field(..., min_length=1)
    link: bool = True
    syntax: bool = False
    optional: bool = False
    options: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def accept_bare_name(cls, data: Any) -> Any:
        """Allow ``requires: [unix, str]`` as shorthand for linked requirements."""
        if isinstance(data, str):
            return {"name": data}
        return data

    def to_requirement(self) -> Requirement:
        return Requirement(
            target=self.name,
            link=self.link,
            syntax=self.syntax,
            optional=self.optional,
            options=dict(self.options),
        )


class DefiningFileDeclaration(BaseModel):
    """A defining file, optionally with its digest."""

    model_config = ConfigDict(extra="forbid")

    path: Name = Field(..., min_length=1)
    digest: str | None = None

    @model_validator(mode="before")
    @classmethod
    def accept_bare_path(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"path": data}
        return data


class PackageDeclaration(BaseModel):
    """
    Everything the core needs to know about one package.

    ``type`` is accepted as an alias of ``package_type`` since that is how
    manifests spell it.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: Name = Field(..., min_length=1)
    dirname: str = "."
    source_kind: str = "ocp"
    package_type: PackageType = Field(default=PackageType.LIBRARY, alias="type")
    provides: OptionalName = None
    files: list[DefiningFileDeclaration] = Field(default_factory=list)
    location: SourceLocation | None = None
    requires: list[RequirementDeclaration] = Field(default_factory=list)
    enabled: bool = True
    plugin: Any = None

    @property
    def defining_files(self) -> tuple[DefiningFile, ...]:
        return tuple(DefiningFile(path=f.path, digest=f.digest) for f in self.files)

    def requirements(self) -> list[Requirement]:
        """Requirements in declaration order."""
        return [req.to_requirement() for req in self.requires]
