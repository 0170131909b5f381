"""The sorted, partitioned result handed to a build driver."""

from dataclasses import dataclass
from typing import Any

from .diagnostics import DependencyCycle, DroppedOptional, UnsatisfiedRequirement
from .package import FinalPackage, PackageType

# DOT fill colors by package type
_TYPE_COLORS = {
    PackageType.PROGRAM: "#d4edda",  # Green
    PackageType.TEST: "#fff3cd",  # Yellow
    PackageType.LIBRARY: "#cce5ff",  # Blue
    PackageType.OBJECTS: "#e2e3e5",  # Gray
    PackageType.SYNTAX: "#e8daef",  # Purple
    PackageType.RULES: "#eeeeee",
}
_DISABLED_COLOR = "#f8d7da"  # Red


def _dot_escape(text: str) -> str:
    """Escape text for use inside a double-quoted DOT string."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _dot_id(package: FinalPackage) -> str:
    return f"{package.source_id}:{_dot_escape(package.name)}"


@dataclass
class Project:
    """
    Buildable and disabled packages of one resolution pass.

    Attributes:
        sorted: Buildable packages, dependencies first; ``final_id`` equals position
        disabled: Packages excluded from the build, in registration order
        unsatisfied: Requirements that disabled their package
        cycles: Dependency cycles found while sorting
        dropped_optional: Optional edges removed from the effective graph
    """

    sorted: tuple[FinalPackage, ...] = ()
    disabled: tuple[FinalPackage, ...] = ()
    unsatisfied: tuple[UnsatisfiedRequirement, ...] = ()
    cycles: tuple[DependencyCycle, ...] = ()
    dropped_optional: tuple[DroppedOptional, ...] = ()

    def __iter__(self):
        return iter(self.sorted)

    def __len__(self) -> int:
        return len(self.sorted)

    def get(self, name: str) -> FinalPackage | None:
        """Find a package by name, buildable ones first."""
        for package in self.sorted + self.disabled:
            if package.name == name:
                return package
        return None

    def batches(self) -> list[list[FinalPackage]]:
        """
        Group buildable packages into levels.

        DEPTH DEFINITION:
        - Packages without effective dependencies: depth = 0
        - Package depth = 1 + max(depth of all dependencies)

        Every package's dependencies sit in earlier batches, so the packages
        of one batch can be built in any order. Within a batch the build
        order of ``sorted`` is kept.

        Returns:
            List of batches in build order
        """
        depths: list[int] = []
        batches: dict[int, list[FinalPackage]] = {}

        for package in self.sorted:
            depth = 0
            if package.dependencies:
                depth = 1 + max(depths[dep.target.id] for dep in package.dependencies)
            depths.append(depth)
            batches.setdefault(depth, []).append(package)

        return [batches[depth] for depth in sorted(batches)]

    def to_dot(self) -> str:
        """
        Generate DOT format representation of the project.

        Returns:
            String containing the Graphviz DOT definition
        """
        lines = ["digraph Project {"]
        lines.append("    rankdir=LR;")
        lines.append("    node [shape=box style=filled];")

        for package in self.sorted + self.disabled:
            node_id = _dot_id(package)
            label = f"{_dot_escape(package.name)}\\n{package.package_type.value}"
            color = _DISABLED_COLOR if package.disabled else _TYPE_COLORS[package.package_type]
            lines.append(f'    "{node_id}" [label="{label}" fillcolor="{color}"];')

        for package in self.sorted + self.disabled:
            node_id = _dot_id(package)
            for dep in package.dependencies:
                target_id = _dot_id(dep.target)
                style = "dashed" if dep.optional else "solid"
                lines.append(f'    "{target_id}" -> "{node_id}" [style={style}];')

        lines.append("}")
        return "\n".join(lines)

    def summary(self) -> dict[str, Any]:
        """Counts used by reports and the CLI."""
        return {
            "total_packages": len(self.sorted) + len(self.disabled),
            "sorted": len(self.sorted),
            "disabled": len(self.disabled),
            "cycles": len(self.cycles),
            "unsatisfied": len(self.unsatisfied),
            "dropped_optional": len(self.dropped_optional),
        }
