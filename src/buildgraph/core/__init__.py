"""Core components: registry and manifest loading.

The resolution pipeline lives in ``core.pipeline`` and is imported from
there, since it depends on the ``dependency`` package.
"""

from .loader import ManifestLoader, load_manifest
from .registry import PackageRegistry

__all__ = [
    "PackageRegistry",
    "ManifestLoader",
    "load_manifest",
]
