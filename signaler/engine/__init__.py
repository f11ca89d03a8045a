"""
Engine Resolution Layer.

This package decides which engine build to run: `ManifestResolver` finds the
manifest, and the layout helpers derive the versioned cache tree and the entry
point from it.
"""

from .layout import build_resolution_report, plan, resolve_entry
from .manifest import ManifestResolver, read_manifest

__all__ = [
    "ManifestResolver",
    "build_resolution_report",
    "plan",
    "read_manifest",
    "resolve_entry",
]
