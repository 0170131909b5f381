"""Topological Sorter - build order and buildable/disabled partition.

ALGORITHM (depth-first, iterative, three passes over registration order):
1. Partition. Walk the non-optional edges depth-first, tracking a visit
   state per package: UNVISITED, IN_PROGRESS, DONE. Reaching an
   IN_PROGRESS package means a back edge, i.e. a cycle: every package on
   the current path from the revisited package to the current one is
   disabled. When a package is finished, a disabled dependency disables
   it as well.
2. Optional edges. Each optional edge is dropped when its target is
   disabled, or when the target already reaches the requirer through
   kept edges (keeping it would close a cycle). Otherwise it is kept.
   Optional edges never disable anything, so the partition depends only
   on the non-optional edges and not on registration order.
3. Order. Walk the kept edges of enabled packages depth-first and append
   each package when it is finished. Children finish before their
   parent, so a dependency always precedes its dependents, and packages
   with no ordering constraint between them keep registration order.

Example:
    A -> B -> C
    A -> C
    Visit A: push A, push B, push C, finish C, finish B, finish A
    Order: [C, B, A]

Cycles never raise: they are recorded as DependencyCycle diagnostics on
the disabled members.

TIME COMPLEXITY: O(V + E) for passes 1 and 3; pass 2 searches the kept
    graph once per optional edge, O(E_optional * (V + E))
SPACE COMPLEXITY: O(V) for the side table and the traversal stack
"""

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from itertools import chain

import structlog

from ..models.dependency import PackageDependency
from ..models.diagnostics import (
    DependencyCycle,
    DiagnosticLog,
    DroppedOptional,
    RequirementCause,
    UnsatisfiedRequirement,
)
from ..models.package import FinalPackage, PrePackage
from ..models.project import Project

logger = structlog.get_logger(__name__)

Edge = PackageDependency[PrePackage]


def _share_cycle(package: PrePackage, other: PrePackage) -> bool:
    return any(
        isinstance(reason, DependencyCycle) and other.id in reason.member_ids
        for reason in package.disabled_reasons
    )


class VisitState(str, Enum):
    """Traversal state of a package."""

    UNVISITED = "unvisited"
    IN_PROGRESS = "in_progress"
    DONE = "done"


@dataclass(eq=False)
class SortNode:
    """
    Sorter bookkeeping for one package.

    Attributes:
        index: Position in the side table, stored in ``PrePackage.sort_node``
        package: The package this node tracks
        state: Current visit state
        parent: Index of the node the traversal came from, used to list cycle members
        kept: Positions of optional edges that survived
        dropped: Positions of optional edges removed from the effective dependencies
    """

    index: int
    package: PrePackage
    state: VisitState = VisitState.UNVISITED
    parent: int | None = None
    kept: set[int] = field(default_factory=set)
    dropped: set[int] = field(default_factory=set)

    def hard_edges(self) -> list[Edge]:
        return [dep for dep in self.package.dependencies if not dep.optional]

    def kept_edges(self) -> list[Edge]:
        """Non-optional edges plus the optional ones kept so far, in declaration order."""
        return [
            dep
            for position, dep in enumerate(self.package.dependencies)
            if not dep.optional or position in self.kept
        ]

    def effective(self) -> list[Edge]:
        return [
            dep
            for position, dep in enumerate(self.package.dependencies)
            if position not in self.dropped
        ]


@dataclass
class SortResult:
    """Outcome of a sort, still in pre phase."""

    order: list[PrePackage]
    disabled: list[PrePackage]
    diagnostics: DiagnosticLog


class TopologicalSorter:
    """
    Sort pre-phase packages and convert them into a Project.

    A sorter owns the side table of one pass; use a fresh sorter (or call
    ``sort`` again, which resets it) for every pass.
    """

    def __init__(self) -> None:
        self._nodes: list[SortNode] = []
        self._order: list[PrePackage] = []
        self._diagnostics = DiagnosticLog()

    def sort(
        self,
        packages: Sequence[PrePackage],
        diagnostics: DiagnosticLog | None = None,
    ) -> SortResult:
        """
        Order packages dependency-first and disable unbuildable ones.

        Args:
            packages: Packages to sort, with resolved dependencies
            diagnostics: Log to extend; builder diagnostics are usually passed here

        Returns:
            SortResult with the build order and the disabled packages
        """
        ordered = sorted(packages, key=lambda package: package.id)
        self._nodes = []
        self._order = []
        self._diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()

        for index, package in enumerate(ordered):
            package.sort_node = index
            self._nodes.append(SortNode(index=index, package=package))

        for node in self._nodes:
            if node.state is VisitState.UNVISITED:
                self._walk(node, SortNode.hard_edges, self._close_cycle, self._apply_edge)

        for node in self._nodes:
            self._settle_optional(node)

        for node in self._nodes:
            if not node.package.disabled:
                node.state = VisitState.UNVISITED
        for node in self._nodes:
            if node.state is VisitState.UNVISITED:
                self._walk(node, SortNode.kept_edges, self._unexpected_cycle, None, self._append)

        for node in self._nodes:
            node.package.dependencies = node.effective()

        disabled = [node.package for node in self._nodes if node.package.disabled]

        logger.info(
            "Topological sort complete",
            sorted=len(self._order),
            disabled=len(disabled),
            cycles=len(self._diagnostics.cycles),
        )

        return SortResult(order=self._order, disabled=disabled, diagnostics=self._diagnostics)

    def _walk(
        self,
        root: SortNode,
        edges_of: Callable[[SortNode], list[Edge]],
        on_back_edge: Callable[[SortNode, SortNode, Edge], None],
        on_edge_done: Callable[[SortNode, Edge], None] | None,
        on_finish: Callable[[SortNode], None] | None = None,
    ) -> None:
        root.state = VisitState.IN_PROGRESS
        root.parent = None

        # (node, remaining edges, edge that led to node)
        stack: list[tuple[SortNode, Iterator[Edge], Edge | None]] = [
            (root, iter(edges_of(root)), None)
        ]

        while stack:
            node, edges, _ = stack[-1]
            dep = next(edges, None)

            if dep is None:
                _, _, entering_edge = stack.pop()
                node.state = VisitState.DONE
                if on_finish is not None:
                    on_finish(node)
                if stack and entering_edge is not None and on_edge_done is not None:
                    on_edge_done(stack[-1][0], entering_edge)
                continue

            child = self._node_of(dep.target)

            if child.state is VisitState.UNVISITED:
                child.state = VisitState.IN_PROGRESS
                child.parent = node.index
                stack.append((child, iter(edges_of(child)), dep))
            elif child.state is VisitState.IN_PROGRESS:
                on_back_edge(node, child, dep)
            elif on_edge_done is not None:
                on_edge_done(node, dep)

    def _node_of(self, package: PrePackage) -> SortNode:
        index = package.sort_node
        if index is None or index >= len(self._nodes) or self._nodes[index].package is not package:
            raise ValueError(f"Package {package.name!r} (id {package.id}) is not part of this sort")
        return self._nodes[index]

    def _apply_edge(self, node: SortNode, dep: Edge) -> None:
        """Propagate through a non-optional edge whose target is finished."""
        target = dep.target
        package = node.package

        if not target.disabled or _share_cycle(package, target):
            return

        miss = UnsatisfiedRequirement(
            package=package.name,
            package_id=package.id,
            required_name=target.provides,
            cause=RequirementCause.DEPENDENCY_DISABLED,
        )
        if miss not in package.disabled_reasons:
            self._diagnostics.unsatisfied.append(miss)
        package.disable(miss)
        logger.debug("Disabled through dependency", package=package.name, requires=target.name)

    def _close_cycle(self, node: SortNode, child: SortNode, dep: Edge) -> None:
        """Handle a non-optional back edge from ``node`` to the in-progress ``child``."""
        # Walk the back-links from the current node up to the revisited one
        members = [node]
        while members[-1] is not child:
            parent = members[-1].parent
            if parent is None:
                raise RuntimeError("Traversal back-links do not reach the cycle start")
            members.append(self._nodes[parent])
        members.reverse()

        cycle = DependencyCycle(
            members=tuple(member.package.name for member in members),
            member_ids=tuple(member.package.id for member in members),
        )
        self._diagnostics.cycles.append(cycle)
        for member in members:
            member.package.disable(cycle)

        logger.warning("Dependency cycle detected, members disabled", cycle=list(cycle.members))

    def _unexpected_cycle(self, node: SortNode, child: SortNode, dep: Edge) -> None:
        raise RuntimeError(
            f"Kept edge {node.package.name!r} -> {child.package.name!r} closes a cycle"
        )

    def _settle_optional(self, node: SortNode) -> None:
        """Keep or drop each optional edge of ``node``, in declaration order."""
        for position, dep in enumerate(node.package.dependencies):
            if not dep.optional:
                continue
            if dep.target.disabled:
                self._drop_optional(node, position, RequirementCause.DISABLED)
            elif not node.package.disabled and self._reaches(self._node_of(dep.target), node):
                self._drop_optional(node, position, RequirementCause.CYCLE)
            else:
                node.kept.add(position)

    def _reaches(self, start: SortNode, goal: SortNode) -> bool:
        """Whether ``goal`` is reachable from ``start`` over kept edges."""
        seen = {start.index}
        pending = [start]
        while pending:
            current = pending.pop()
            if current is goal:
                return True
            for dep in current.kept_edges():
                target = self._node_of(dep.target)
                if target.index not in seen:
                    seen.add(target.index)
                    pending.append(target)
        return False

    def _drop_optional(self, node: SortNode, position: int, cause: RequirementCause) -> None:
        dep = node.package.dependencies[position]
        node.dropped.add(position)
        self._diagnostics.dropped.append(
            DroppedOptional(
                package=node.package.name,
                package_id=node.package.id,
                required_name=dep.target.provides,
                cause=cause,
            )
        )
        logger.debug(
            "Dropped optional requirement",
            package=node.package.name,
            requires=dep.target.name,
            cause=cause.value,
        )

    def _append(self, node: SortNode) -> None:
        self._order.append(node.package)

    def finalize(self, result: SortResult) -> Project:
        """
        Convert sorted packages into final packages.

        Buildable packages get continuous final ids equal to their position
        in the build order. Disabled packages keep their registry ids and
        are listed in registration order.

        Args:
            result: Output of ``sort``

        Returns:
            The Project owning both package sequences
        """
        finals: dict[int, FinalPackage] = {}
        for final_id, package in enumerate(result.order):
            finals[package.id] = FinalPackage.from_pre(package, final_id=final_id)
        for package in result.disabled:
            finals[package.id] = FinalPackage.from_pre(package, final_id=None)

        for package in chain(result.order, result.disabled):
            finals[package.id].dependencies = [
                dep.retarget(finals[dep.target.id]) for dep in package.dependencies
            ]

        diagnostics = result.diagnostics
        return Project(
            sorted=tuple(finals[package.id] for package in result.order),
            disabled=tuple(finals[package.id] for package in result.disabled),
            unsatisfied=tuple(diagnostics.unsatisfied),
            cycles=tuple(diagnostics.cycles),
            dropped_optional=tuple(diagnostics.dropped),
        )
