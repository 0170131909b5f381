"""Non-fatal diagnostics recorded while resolving and sorting packages.

A package that cannot be built is disabled, not rejected. The records in
this module explain why, and are attached both to the disabled package
and to the ``Project`` that comes out of the sort.
"""

from dataclasses import dataclass, field
from enum import Enum


class RequirementCause(str, Enum):
    """Why a requirement could not be honoured."""

    MISSING = "missing"  # No package provides the name
    DISABLED = "disabled"  # Every provider is disabled
    DEPENDENCY_DISABLED = "dependency_disabled"  # Resolved target was disabled while sorting
    CYCLE = "cycle"  # Optional edge would have closed a cycle


@dataclass(frozen=True)
class UnsatisfiedRequirement:
    """A non-optional requirement that disables its package."""

    package: str
    package_id: int
    required_name: str
    cause: RequirementCause

    def describe(self) -> str:
        if self.cause == RequirementCause.MISSING:
            return f"requires {self.required_name!r}, which no package provides"
        if self.cause == RequirementCause.DISABLED:
            return f"requires {self.required_name!r}, whose providers are all disabled"
        return f"requires {self.required_name!r}, which is disabled"


@dataclass(frozen=True)
class DependencyCycle:
    """
    A cycle of non-optional requirements.

    Attributes:
        members: Names of the cycle members, in traversal order
        member_ids: Registry ids matching ``members``
    """

    members: tuple[str, ...]
    member_ids: tuple[int, ...]

    def describe(self) -> str:
        path = " -> ".join(self.members + self.members[:1])
        return f"dependency cycle: {path}"


@dataclass(frozen=True)
class DisabledByDeclaration:
    """The build description itself disabled the package."""

    package: str
    package_id: int

    def describe(self) -> str:
        return "disabled in its declaration"


@dataclass(frozen=True)
class DroppedOptional:
    """An optional edge removed from its package's effective dependencies."""

    package: str
    package_id: int
    required_name: str
    cause: RequirementCause

    def describe(self) -> str:
        return f"optional requirement {self.required_name!r} dropped ({self.cause.value})"


DisableReason = UnsatisfiedRequirement | DependencyCycle | DisabledByDeclaration


@dataclass
class DiagnosticLog:
    """Diagnostics shared by the builder and the sorter during one pass."""

    unsatisfied: list[UnsatisfiedRequirement] = field(default_factory=list)
    cycles: list[DependencyCycle] = field(default_factory=list)
    dropped: list[DroppedOptional] = field(default_factory=list)
