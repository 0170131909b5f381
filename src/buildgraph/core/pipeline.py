"""Resolution pipeline - declarations in, Project out.

declarations -> PackageRegistry (ids) -> GraphBuilder (edges)
             -> TopologicalSorter (order + partition) -> Project

The whole pass is synchronous and in-memory. Fatal errors
(DuplicateDefinitionError, AmbiguousProvidesError) abort before sorting;
everything else ends up as disabled packages in the Project.
"""

import time
from collections.abc import Iterable

import structlog

from ..config import ResolutionConfig
from ..dependency.builder import GraphBuilder
from ..dependency.sorter import TopologicalSorter
from ..models.declarations import PackageDeclaration
from ..models.project import Project
from ..observability.logger import LogContext
from ..observability.metrics import MetricsCollector, get_global_collector
from .registry import PackageRegistry

logger = structlog.get_logger(__name__)


def load_project(
    declarations: Iterable[PackageDeclaration],
    config: ResolutionConfig | None = None,
    metrics: MetricsCollector | None = None,
) -> Project:
    """
    Resolve and sort a set of package declarations.

    Args:
        declarations: Packages in registration order
        config: Resolution policy (default: ResolutionConfig())
        metrics: Collector to record into (default: the global collector)

    Returns:
        Project with the build order and the disabled packages

    Raises:
        DuplicateDefinitionError: If a (name, dirname) pair is repeated and not allowed
        AmbiguousProvidesError: If a requirement matches several enabled packages
    """
    config = config or ResolutionConfig()
    metrics = metrics or get_global_collector()
    registry = PackageRegistry()

    with LogContext(stage="resolve"):
        started = time.time()
        builder = GraphBuilder(registry=registry, config=config)
        builder.declare_all(declarations)
        packages = builder.resolve()
        metrics.record_stage_duration("resolve", (time.time() - started) * 1000)

    metrics.update_graph_size(
        packages=len(packages),
        edges=sum(len(package.dependencies) for package in packages),
    )

    with LogContext(stage="sort"):
        started = time.time()
        sorter = TopologicalSorter()
        result = sorter.sort(packages, diagnostics=builder.diagnostics)
        project = sorter.finalize(result)
        metrics.record_stage_duration("sort", (time.time() - started) * 1000)

    for package in project.sorted:
        metrics.count_package("sorted", package.package_type.value)
    for package in project.disabled:
        metrics.count_package("disabled", package.package_type.value)
        logger.info(
            "Package disabled",
            package=package.name,
            reasons=package.describe_disabled(),
        )
    metrics.count_cycles(len(project.cycles))
    metrics.flush()

    logger.info("Project loaded", **project.summary())
    return project
