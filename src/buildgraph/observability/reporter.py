"""Project Report Generator.

Generates machine-readable JSON reports for resolution passes.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog

from ..models.package import FinalPackage
from ..models.project import Project

logger = structlog.get_logger(__name__)


@dataclass
class ProjectReport:
    """
    Structured report data for one resolution pass.

    Attributes:
        status: "complete" when nothing was disabled, "partial" otherwise,
            "empty" when the build would produce nothing
        generated_at: Timestamp of the report
        manifest: Source the declarations were read from, if any
        total_packages: Number of declared packages
        sorted_packages: Number of buildable packages
        disabled_packages: Number of disabled packages
        cycle_count: Number of dependency cycles
        build_order: One entry per buildable package, in build order
        disabled: One entry per disabled package with its reasons
        cycles: Member names of each cycle
        dropped_optional: Optional edges removed from the effective graph
        metrics: Metrics summary at report time
    """

    status: str
    generated_at: str
    manifest: str | None
    total_packages: int
    sorted_packages: int
    disabled_packages: int
    cycle_count: int
    build_order: list[dict[str, Any]] = field(default_factory=list)
    disabled: list[dict[str, Any]] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    dropped_optional: list[dict[str, Any]] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)


def _package_entry(package: FinalPackage, batch: int | None = None) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "id": package.id,
        "name": package.name,
        "provides": package.provides,
        "type": package.package_type.value,
        "dirname": package.dirname,
        "requires": [
            {"name": dep.target.name, "kind": dep.kind, "options": dep.options}
            for dep in package.dependencies
        ],
    }
    if batch is not None:
        entry["batch"] = batch
    if package.disabled:
        entry["reasons"] = package.describe_disabled()
    return entry


class ReportGenerator:
    """
    Generate reports for resolution passes.
    """

    def generate_report(
        self,
        project: Project,
        manifest: Path | None = None,
        metrics: dict[str, Any] | None = None,
        generated_at: datetime | None = None,
    ) -> ProjectReport:
        """
        Build a report object from a project.

        Args:
            project: Result of the pass
            manifest: Manifest the declarations came from
            metrics: Metrics summary to embed
            generated_at: Report timestamp (default: now)

        Returns:
            ProjectReport object
        """
        summary = project.summary()

        status = "complete"
        if project.disabled:
            status = "partial" if project.sorted else "empty"

        batch_of = {
            package.id: index
            for index, batch in enumerate(project.batches())
            for package in batch
        }

        return ProjectReport(
            status=status,
            generated_at=(generated_at or datetime.now()).isoformat(),
            manifest=str(manifest) if manifest else None,
            total_packages=summary["total_packages"],
            sorted_packages=summary["sorted"],
            disabled_packages=summary["disabled"],
            cycle_count=summary["cycles"],
            build_order=[_package_entry(p, batch_of[p.id]) for p in project.sorted],
            disabled=[_package_entry(p) for p in project.disabled],
            cycles=[list(cycle.members) for cycle in project.cycles],
            dropped_optional=[
                {
                    "package": dropped.package,
                    "requires": dropped.required_name,
                    "cause": dropped.cause.value,
                }
                for dropped in project.dropped_optional
            ],
            metrics=metrics or {},
        )

    def to_json(self, report: ProjectReport) -> str:
        return json.dumps(asdict(report), indent=2, default=str)

    def write_json_report(self, report: ProjectReport, output_path: Path) -> None:
        """
        Write report as JSON.

        Args:
            report: Project report
            output_path: Output file path
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(self.to_json(report))

        logger.info("JSON report written", path=str(output_path))
