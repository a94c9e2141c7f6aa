"""Dependency archive cache APIs."""

from .store import DependencyCache, cache_filename

__all__ = ["DependencyCache", "cache_filename"]
