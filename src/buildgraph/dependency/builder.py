"""Graph Builder - resolves named requirements into package edges.

Purpose:
-------
Declarations name their requirements by the logical name a package
*provides*, not by package id. The GraphBuilder registers every
declaration, then looks each requirement up in the registry's provides
index and attaches a typed edge to the concrete package.

Resolution Rules:
----------------
1. No provider:
   - non-optional -> the requiring package is disabled (unsatisfiable)
   - optional     -> the edge is silently dropped
2. One provider: the edge is attached, even if that provider is disabled.
   The sorter propagates the disabled state along non-optional edges.
3. Several providers:
   - exactly one enabled -> resolve to it (disabled packages never win)
   - none enabled        -> treated like rule 1
   - several enabled     -> AmbiguousProvidesError, the pass is aborted

Important Design Notes:
----------------------
- Missing providers are detected in a first pass over all packages, and
  packages left without an enabled provider are only disabled after the
  second pass. Ambiguity decisions therefore see the same disabled set
  whatever the declaration order.
- Edge order equals declaration order.
- Self-requirements are kept; the sorter reports them as one-member cycles.
"""

from collections.abc import Iterable

import structlog

from ..config import ResolutionConfig
from ..core.registry import PackageRegistry
from ..models.declarations import PackageDeclaration
from ..models.dependency import PackageDependency, Requirement
from ..models.diagnostics import (
    DiagnosticLog,
    DisabledByDeclaration,
    DroppedOptional,
    RequirementCause,
    UnsatisfiedRequirement,
)
from ..models.package import PrePackage
from ..utils.exceptions import AmbiguousProvidesError, DuplicateDefinitionError

logger = structlog.get_logger(__name__)


class GraphBuilder:
    """
    Register declarations and wire their requirements.

    Attributes:
        registry: Registry receiving the declared packages
        config: Duplicate-definition policy
        diagnostics: Misses and dropped optional edges found while resolving
    """

    def __init__(
        self,
        registry: PackageRegistry | None = None,
        config: ResolutionConfig | None = None,
    ) -> None:
        self.registry = registry if registry is not None else PackageRegistry()
        self.config = config or ResolutionConfig()
        self.diagnostics = DiagnosticLog()
        self._requirements: dict[int, list[Requirement]] = {}

    def declare(self, declaration: PackageDeclaration) -> int:
        """
        Register one declaration and remember its requirements.

        Args:
            declaration: Package as supplied by the loader

        Returns:
            The registry id of the new package

        Raises:
            DuplicateDefinitionError: If (name, dirname) is already registered
                and duplicates are not allowed
        """
        existing = self.registry.find(declaration.name, declaration.dirname)
        if existing and not self.config.allow_duplicate_definitions:
            raise DuplicateDefinitionError(declaration.name, declaration.dirname, existing[0])

        package_id = self.registry.register(
            declaration.name,
            declaration.dirname,
            declaration.source_kind,
            declaration.package_type,
            declaration.defining_files,
            declaration.location,
            provides=declaration.provides,
            plugin=declaration.plugin,
        )

        if not declaration.enabled:
            package = self.registry.get(package_id)
            package.disable(DisabledByDeclaration(package=package.name, package_id=package_id))

        self._requirements[package_id] = declaration.requirements()
        return package_id

    def declare_all(self, declarations: Iterable[PackageDeclaration]) -> list[int]:
        """Register declarations in order, returning their ids."""
        return [self.declare(declaration) for declaration in declarations]

    def add_requirement(self, package_id: int, requirement: Requirement) -> None:
        """Append a requirement to a package registered directly on the registry."""
        self.registry.get(package_id)
        self._requirements.setdefault(package_id, []).append(requirement)

    def resolve(self) -> list[PrePackage]:
        """
        Attach resolved edges to every registered package.

        Returns:
            All packages in id order

        Raises:
            AmbiguousProvidesError: If a requirement matches several enabled packages
        """
        packages = self.registry.packages
        logger.info("Resolving requirements", package_count=len(packages))

        # First pass: requirements nobody provides
        for package in packages:
            for requirement in self._requirements.get(package.id, ()):
                if not self.registry.lookup_by_provides(requirement.target):
                    self._unresolvable(package, requirement, RequirementCause.MISSING)

        # Second pass: wire edges against the disabled set of the first pass
        deferred: list[tuple[PrePackage, Requirement]] = []
        for package in packages:
            for requirement in self._requirements.get(package.id, ()):
                candidates = self.registry.providers(requirement.target)
                if not candidates:
                    continue

                target = self._choose_provider(package, requirement, candidates)
                if target is None:
                    deferred.append((package, requirement))
                    continue

                package.dependencies.append(requirement.retarget(target))
                logger.debug(
                    "Added dependency edge",
                    package=package.name,
                    requires=target.name,
                    kind=requirement.kind,
                )

        for package, requirement in deferred:
            self._unresolvable(package, requirement, RequirementCause.DISABLED)

        logger.info(
            "Requirements resolved",
            packages=len(packages),
            edges=sum(len(package.dependencies) for package in packages),
            unsatisfied=len(self.diagnostics.unsatisfied),
        )

        return packages

    def _choose_provider(
        self,
        package: PrePackage,
        requirement: PackageDependency[str],
        candidates: list[PrePackage],
    ) -> PrePackage | None:
        if len(candidates) == 1:
            return candidates[0]

        enabled = [candidate for candidate in candidates if not candidate.disabled]
        if len(enabled) > 1:
            raise AmbiguousProvidesError(
                requirement.target, package.name, [candidate.name for candidate in enabled]
            )
        if not enabled:
            return None

        logger.debug(
            "Resolved ambiguous requirement to the only enabled provider",
            package=package.name,
            requires=requirement.target,
            provider_id=enabled[0].id,
        )
        return enabled[0]

    def _unresolvable(
        self,
        package: PrePackage,
        requirement: Requirement,
        cause: RequirementCause,
    ) -> None:
        if requirement.optional:
            self.diagnostics.dropped.append(
                DroppedOptional(
                    package=package.name,
                    package_id=package.id,
                    required_name=requirement.target,
                    cause=cause,
                )
            )
            logger.debug(
                "Dropped optional requirement",
                package=package.name,
                requires=requirement.target,
                cause=cause.value,
            )
            return

        miss = UnsatisfiedRequirement(
            package=package.name,
            package_id=package.id,
            required_name=requirement.target,
            cause=cause,
        )
        package.disable(miss)
        self.diagnostics.unsatisfied.append(miss)
        logger.warning(
            "Unsatisfied requirement, package disabled",
            package=package.name,
            requires=requirement.target,
            cause=cause.value,
        )
