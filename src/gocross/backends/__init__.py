"""Build backend implementations."""

from .base import build_environment, targets_value
from .contained import CONTAINED_BUILD_COMMAND, LOCAL_BUILD_SENTINEL, ContainedBackend
from .docker import DockerBackend

__all__ = [
    "CONTAINED_BUILD_COMMAND",
    "ContainedBackend",
    "DockerBackend",
    "LOCAL_BUILD_SENTINEL",
    "build_environment",
    "targets_value",
]
