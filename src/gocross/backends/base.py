"""Shared environment assembly for build backends."""

from __future__ import annotations

from gocross.models import BuildOptions, ResolvedConfig


def _flag(value: bool) -> str:
    return "true" if value else "false"


def targets_value(targets: tuple[str, ...]) -> str:
    """Space-joined target list with ``*`` globs rewritten to regex ``.``."""
    return " ".join(targets).replace("*", ".")


def build_environment(config: ResolvedConfig, options: BuildOptions) -> dict[str, str]:
    """Variables consumed by the image's build script, in a stable order."""
    return {
        "REPO_REMOTE": config.remote,
        "REPO_BRANCH": config.branch,
        "PACK": config.package,
        "DEPS": config.dependencies,
        "ARGS": config.arguments,
        "OUT": config.prefix,
        "FLAG_V": _flag(options.verbose),
        "FLAG_X": _flag(options.steps),
        "FLAG_RACE": _flag(options.race),
        "FLAG_TAGS": options.tags,
        "FLAG_LDFLAGS": options.ldflags,
        "FLAG_BUILDMODE": options.mode,
        "FLAG_BUILDVCS": options.vcs,
        "FLAG_TRIMPATH": _flag(options.trimpath),
        "TARGETS": targets_value(config.targets),
    }
