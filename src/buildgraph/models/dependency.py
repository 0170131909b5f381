"""Typed dependency edges between packages."""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(eq=False)
class PackageDependency(Generic[T]):
    """
    One outgoing edge of a package.

    The target representation changes with the lifecycle of the graph:
    a required name (``str``) while declarations are collected, a
    ``PrePackage`` once the builder has resolved it, and a ``FinalPackage``
    inside a ``Project``.

    Attributes:
        target: The required package (or its logical name before resolution)
        link: The target's artifact is linked into the dependent's artifact
        syntax: The target is needed at preprocessing time
        optional: Drop the edge instead of disabling the dependent when the
            target is missing or disabled
        options: Opaque per-edge settings forwarded to the build driver
    """

    target: T
    link: bool = True
    syntax: bool = False
    optional: bool = False
    options: dict[str, Any] = field(default_factory=dict)

    def retarget(self, target: U) -> "PackageDependency[U]":
        """Return the same edge pointing at another representation of its target."""
        return PackageDependency(
            target=target,
            link=self.link,
            syntax=self.syntax,
            optional=self.optional,
            options=self.options,
        )

    @property
    def kind(self) -> str:
        """Short label for diagnostics and graph rendering."""
        flags = []
        if self.link:
            flags.append("link")
        if self.syntax:
            flags.append("syntax")
        if self.optional:
            flags.append("optional")
        return ",".join(flags) or "build"


# Edge as written in a declaration, before the name is resolved
Requirement = PackageDependency[str]
