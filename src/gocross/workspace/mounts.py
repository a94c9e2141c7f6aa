"""Bind-mount planning for legacy GOPATH workspaces.

Docker does not follow host symlinks out of a bind mount, so every symlinked
directory under ``$GOPATH/src`` that points outside of it is mounted into the
container explicitly. Each mapping gets its own ``/ext-go/<slot>`` GOPATH
entry; slots are numbered from 1 in discovery order across all GOPATH roots
so the same workspace always yields the same ``docker run`` invocation.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath

from gocross.models import CONTAINER_EXT_GOPATH, MountPlan
from gocross.observability import BuildLogger


def _escaping_target(link: Path, sources: Path) -> Path | None:
    """Resolved directory *link* points to, or ``None`` when no extra mount is needed."""
    try:
        target = Path(os.path.realpath(link, strict=True))
    except OSError:
        return None
    if not target.is_dir():
        return None
    for root in {sources, Path(os.path.realpath(sources))}:
        if target == root or root in target.parents:
            return None
    return target


def _walk_symlinks(sources: Path, logger: BuildLogger) -> list[Path]:
    """Symlinks under *sources*, depth first with each directory's entries in name order."""
    links: list[Path] = []

    def visit(directory: Path) -> None:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as exc:
            logger.printf("WARNING: Failed to access GOPATH element %s: %s", exc.filename, exc)
            return
        for entry in entries:
            if entry.is_symlink():
                links.append(Path(entry.path))
            elif entry.is_dir(follow_symlinks=False):
                visit(Path(entry.path))

    visit(sources)
    return links


def plan_mounts(
    search_path: str,
    logger: BuildLogger,
    *,
    separator: str = os.pathsep,
) -> MountPlan:
    sources_out: list[Path] = []
    targets: list[str] = []
    paths: list[str] = []

    def allocate(source: Path, relative: PurePosixPath) -> None:
        sources_out.append(source)
        slot = PurePosixPath(CONTAINER_EXT_GOPATH) / str(len(sources_out))
        targets.append(str(slot / "src" / relative))
        paths.append(str(slot))

    for entry in search_path.split(separator):
        if not entry:
            continue
        sources = Path(os.path.abspath(entry)) / "src"
        for link in _walk_symlinks(sources, logger):
            target = _escaping_target(link, sources)
            if target is None:
                continue
            allocate(target, PurePosixPath(link.relative_to(sources).as_posix()))
        allocate(sources, PurePosixPath())

    return MountPlan(sources=tuple(sources_out), targets=tuple(targets), paths=tuple(paths))


__all__ = ["plan_mounts"]
