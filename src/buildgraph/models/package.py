"""Package records for the two phases of the graph.

A package starts as a ``PrePackage`` when it is registered. The builder
attaches resolved edges to it and the sorter flags it disabled or not.
Once sorted, each ``PrePackage`` is converted into a ``FinalPackage``
whose identity and requirement list are closed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .dependency import PackageDependency
from .diagnostics import DisableReason


class PackageType(str, Enum):
    """Kind of artifact a package produces."""

    PROGRAM = "program"
    TEST = "test"
    LIBRARY = "library"
    OBJECTS = "objects"
    SYNTAX = "syntax"
    RULES = "rules"


@dataclass(frozen=True)
class DefiningFile:
    """
    A file whose content defines a package.

    Attributes:
        path: Location of the file
        digest: Content digest, or None when the file has not been hashed yet
    """

    path: str
    digest: str | None = None


@dataclass(frozen=True)
class SourceLocation:
    """Where a package was declared."""

    filename: str
    line: int | None = None

    def __str__(self) -> str:
        if self.line is None:
            return self.filename
        return f"{self.filename}:{self.line}"


@dataclass(eq=False, kw_only=True)
class _PackageFields:
    """Descriptive fields carried unchanged from registration to the project."""

    name: str
    dirname: str
    source_kind: str
    package_type: PackageType
    provides: str = ""
    location: SourceLocation | None = None
    defining_files: tuple[DefiningFile, ...] = ()
    plugin: Any = None
    disabled: bool = False
    disabled_reasons: list[DisableReason] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.provides:
            self.provides = self.name

    def describe_disabled(self) -> list[str]:
        """Human-readable reasons this package was disabled."""
        return [reason.describe() for reason in self.disabled_reasons]


@dataclass(eq=False, kw_only=True)
class PrePackage(_PackageFields):
    """
    A registered package whose requirements are still being worked on.

    Attributes:
        id: Registry id, unique and monotonically assigned
        dependencies: Resolved outgoing edges, in declaration order
        sort_node: Index of this package's entry in the sorter's side table
    """

    id: int
    dependencies: list[PackageDependency["PrePackage"]] = field(default_factory=list)
    sort_node: int | None = None

    @property
    def requires(self) -> list["PrePackage"]:
        return [dep.target for dep in self.dependencies]

    def disable(self, reason: DisableReason | None = None) -> None:
        """Mark the package as unbuildable; disabling is never undone."""
        self.disabled = True
        if reason is not None and reason not in self.disabled_reasons:
            self.disabled_reasons.append(reason)

    def __repr__(self) -> str:
        state = " disabled" if self.disabled else ""
        return f"<PrePackage #{self.id} {self.name}{state}>"


@dataclass(eq=False, kw_only=True)
class FinalPackage(_PackageFields):
    """
    A package placed in a ``Project``.

    Attributes:
        final_id: Position in ``Project.sorted``; None for disabled packages
        source_id: Id the package had in the registry
        dependencies: Effective outgoing edges, closed over the project
    """

    final_id: int | None
    source_id: int
    dependencies: list[PackageDependency["FinalPackage"]] = field(default_factory=list)

    @property
    def id(self) -> int:
        """Continuous final id for buildable packages, registry id otherwise."""
        return self.final_id if self.final_id is not None else self.source_id

    @property
    def requires(self) -> list["FinalPackage"]:
        return [dep.target for dep in self.dependencies]

    @classmethod
    def from_pre(cls, package: PrePackage, final_id: int | None) -> "FinalPackage":
        """Copy the descriptive fields of a sorted package; edges are linked afterwards."""
        return cls(
            name=package.name,
            dirname=package.dirname,
            source_kind=package.source_kind,
            package_type=package.package_type,
            provides=package.provides,
            location=package.location,
            defining_files=package.defining_files,
            plugin=package.plugin,
            disabled=package.disabled,
            disabled_reasons=list(package.disabled_reasons),
            final_id=final_id,
            source_id=package.id,
        )

    def __repr__(self) -> str:
        state = " disabled" if self.disabled else ""
        return f"<FinalPackage #{self.id} {self.name}{state}>"
