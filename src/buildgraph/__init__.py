"""buildgraph - Package dependency graph and build ordering."""

__version__ = "0.1.0"

from .config import BuildGraphConfig, ResolutionConfig  # noqa: E402
from .core.pipeline import load_project  # noqa: E402
from .models import PackageDeclaration, PackageType, Project  # noqa: E402

__all__ = [
    "BuildGraphConfig",
    "ResolutionConfig",
    "PackageDeclaration",
    "PackageType",
    "Project",
    "load_project",
    "__version__",
]
