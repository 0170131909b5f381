"""Pytest configuration and shared fixtures.

Fixtures are organized by category:
- Declaration fixtures: factories for package declarations
- Manifest fixtures: manifests written to a temp directory
- Infrastructure fixtures: metrics collectors, configs
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

from src.buildgraph.config import ResolutionConfig
from src.buildgraph.core.pipeline import load_project
from src.buildgraph.models.declarations import PackageDeclaration
from src.buildgraph.models.project import Project
from src.buildgraph.observability.metrics import MetricsCollector

# =============================================================================
# Declaration Fixtures
# =============================================================================


def declare(name: str, *requires: Any, **fields: Any) -> PackageDeclaration:
    """Build a declaration; requirements may be names or requirement dicts."""
    return PackageDeclaration.model_validate(
        {"name": name, "requires": list(requires), **fields}
    )


@pytest.fixture
def make_declaration() -> Callable[..., PackageDeclaration]:
    """Factory for package declarations.

    Example:
        def test_something(make_declaration):
            a = make_declaration("a", "b", {"name": "c", "optional": True})
    """
    return declare


@pytest.fixture
def metrics() -> MetricsCollector:
    """Fresh metrics collector, so tests do not share the global one."""
    return MetricsCollector()


@pytest.fixture
def resolve(metrics: MetricsCollector) -> Callable[..., Project]:
    """Run the whole pipeline on declarations.

    Example:
        project = resolve([declare("a", "b"), declare("b")])
    """

    def _resolve(
        declarations: list[PackageDeclaration], config: ResolutionConfig | None = None
    ) -> Project:
        return load_project(declarations, config=config, metrics=metrics)

    return _resolve


# =============================================================================
# Manifest Fixtures
# =============================================================================


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[..., Path]:
    """Write a manifest document to the temp directory and return its path."""

    def _write(data: Any, name: str = "packages.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_manifest(write_manifest: Callable[..., Path]) -> Path:
    """Manifest with a library stack, an optional miss and a broken program."""
    return write_manifest(
        {
            "packages": [
                {"name": "server", "type": "program", "requires": ["net", "log"]},
                {"name": "net", "dirname": "libs/net", "requires": ["unix"]},
                {"name": "unix", "dirname": "libs/unix"},
                {
                    "name": "log",
                    "dirname": "libs/log",
                    "requires": [{"name": "syslog", "optional": True}],
                },
                {"name": "tool", "type": "program", "requires": ["missing-lib"]},
            ]
        }
    )


@pytest.fixture
def cyclic_manifest(write_manifest: Callable[..., Path]) -> Path:
    """Manifest where two libraries require each other."""
    return write_manifest(
        {
            "packages": [
                {"name": "a", "requires": ["b"]},
                {"name": "b", "requires": ["a"]},
                {"name": "c"},
            ]
        },
        name="cyclic.yaml",
    )
