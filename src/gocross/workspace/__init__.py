"""Workspace resolution and GOPATH mount planning."""

from .mounts import plan_mounts
from .resolve import (
    MODULE_MANIFEST,
    WorkspaceResolver,
    is_local_source,
    resolve_import_path,
    uses_modules,
)

__all__ = [
    "MODULE_MANIFEST",
    "WorkspaceResolver",
    "is_local_source",
    "plan_mounts",
    "resolve_import_path",
    "uses_modules",
]
