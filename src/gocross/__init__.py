"""Public package entrypoint for gocross, containerised Go cross compilation."""

from .errors import (
    BuildCancelledError,
    CacheError,
    ErrorCode,
    ExecutionError,
    GocrossError,
    ImageError,
    PreconditionError,
    ResolutionError,
)
from .models import (
    BuildOptions,
    BuildRequest,
    BuildResult,
    BuildState,
    ExecutionSpec,
    HostEnvironment,
    MountPlan,
    ResolvedConfig,
)
from .observability import BuildLogger, StdlibLogger, StructuredLogger
from .orchestrator import BuildOrchestrator, start_build, start_build_ctx

__all__ = [
    "BuildCancelledError",
    "BuildLogger",
    "BuildOptions",
    "BuildOrchestrator",
    "BuildRequest",
    "BuildResult",
    "BuildState",
    "CacheError",
    "ErrorCode",
    "ExecutionError",
    "ExecutionSpec",
    "GocrossError",
    "HostEnvironment",
    "ImageError",
    "MountPlan",
    "PreconditionError",
    "ResolutionError",
    "ResolvedConfig",
    "StdlibLogger",
    "StructuredLogger",
    "start_build",
    "start_build_ctx",
]
