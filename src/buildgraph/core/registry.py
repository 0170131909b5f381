"""Package Registry - owns the declared packages and their identities."""

from collections.abc import Iterable, Iterator
from typing import Any

import structlog

from ..models.package import DefiningFile, PackageType, PrePackage, SourceLocation
from ..utils.exceptions import UnknownPackageError

logger = structlog.get_logger(__name__)


class PackageRegistry:
    """
    Universe of declared packages, indexed by id and by provided name.

    Ids are assigned in registration order starting at 0, so iterating the
    registry visits packages in id order. Whether a definition may be
    repeated is up to the caller; the registry only keeps ids unique.

    One registry serves one resolution pass. It is not safe to share a
    registry between concurrent passes.
    """

    def __init__(self) -> None:
        self._packages: list[PrePackage] = []
        self._by_provides: dict[str, list[int]] = {}
        self._by_definition: dict[tuple[str, str], list[int]] = {}

    def register(
        self,
        name: str,
        dirname: str,
        source_kind: str,
        package_type: PackageType,
        defining_files: Iterable[DefiningFile] = (),
        location: SourceLocation | None = None,
        *,
        provides: str | None = None,
        plugin: Any = None,
        disabled: bool = False,
    ) -> int:
        """
        Create a pre-phase package with a fresh id.

        Args:
            name: Declared package name
            dirname: Directory holding the package's defining files
            source_kind: Description dialect that produced the package
            package_type: Kind of artifact the package produces
            defining_files: Files whose content defines the package
            location: Declaration site, for diagnostics
            provides: Logical name exported for resolution (defaults to name)
            plugin: Opaque build-driver payload
            disabled: Register the package as already disabled

        Returns:
            The new package id
        """
        package_id = len(self._packages)
        package = PrePackage(
            id=package_id,
            name=name,
            dirname=dirname,
            source_kind=source_kind,
            package_type=package_type,
            provides=provides or name,
            location=location,
            defining_files=tuple(defining_files),
            plugin=plugin,
            disabled=disabled,
        )

        self._packages.append(package)
        self._by_provides.setdefault(package.provides, []).append(package_id)
        self._by_definition.setdefault((name, dirname), []).append(package_id)

        logger.debug(
            "Registered package",
            package_id=package_id,
            name=name,
            provides=package.provides,
            package_type=package_type.value,
        )

        return package_id

    def get(self, package_id: int) -> PrePackage:
        """
        Return the package with the given id.

        Raises:
            UnknownPackageError: If the id was never issued
        """
        if not 0 <= package_id < len(self._packages):
            raise UnknownPackageError(package_id)
        return self._packages[package_id]

    def lookup_by_provides(self, name: str) -> set[int]:
        """Ids of every package exporting ``name``."""
        return set(self._by_provides.get(name, ()))

    def providers(self, name: str) -> list[PrePackage]:
        """Packages exporting ``name``, in id order."""
        return [self._packages[package_id] for package_id in self._by_provides.get(name, ())]

    def find(self, name: str, dirname: str) -> list[int]:
        """Ids of the packages declared with this name in this directory."""
        return list(self._by_definition.get((name, dirname), ()))

    @property
    def packages(self) -> list[PrePackage]:
        """All packages in id order."""
        return list(self._packages)

    def __len__(self) -> int:
        return len(self._packages)

    def __iter__(self) -> Iterator[PrePackage]:
        return iter(self._packages)
