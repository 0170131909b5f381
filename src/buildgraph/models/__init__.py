"""Data models for packages, edges, and projects."""

from .declarations import DefiningFileDeclaration, PackageDeclaration, RequirementDeclaration
from .dependency import PackageDependency, Requirement
from .diagnostics import (
    DependencyCycle,
    DiagnosticLog,
    DisabledByDeclaration,
    DisableReason,
    DroppedOptional,
    RequirementCause,
    UnsatisfiedRequirement,
)
from .package import DefiningFile, FinalPackage, PackageType, PrePackage, SourceLocation
from .project import Project

__all__ = [
    "PackageType",
    "DefiningFile",
    "SourceLocation",
    "PrePackage",
    "FinalPackage",
    "PackageDependency",
    "Requirement",
    "Project",
    "PackageDeclaration",
    "RequirementDeclaration",
    "DefiningFileDeclaration",
    "RequirementCause",
    "UnsatisfiedRequirement",
    "DependencyCycle",
    "DisabledByDeclaration",
    "DroppedOptional",
    "DisableReason",
    "DiagnosticLog",
]
