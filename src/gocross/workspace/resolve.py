"""Module vs. GOPATH workspace detection and import path discovery."""

from __future__ import annotations

import os
from pathlib import Path

from gocross.errors import ResolutionError
from gocross.models import HostEnvironment, WorkspaceResolution
from gocross.observability import BuildLogger

MODULE_MANIFEST = "go.mod"


def is_local_source(repository: str) -> bool:
    return repository.startswith(os.sep) or repository.startswith(".")


def uses_modules(path: str | Path) -> bool:
    return (Path(path) / MODULE_MANIFEST).exists()


def resolve_import_path(path: str | Path, search_path: str) -> str:
    """Map a local package directory to its import path under one of the GOPATH roots."""
    absolute = Path(os.path.abspath(path))
    if not absolute.is_dir():
        raise ResolutionError(
            "requested path invalid",
            hint="Pass an existing package directory.",
            context={"operation": "resolve_import_path", "path": str(absolute)},
        )
    for entry in search_path.split(os.pathsep):
        if not entry:
            continue
        sources = Path(os.path.abspath(entry)) / "src"
        try:
            relative = absolute.relative_to(sources)
        except ValueError:
            continue
        if relative.parts:
            return relative.as_posix()
    raise ResolutionError(
        "failed to resolve import path",
        hint="Place the package under $GOPATH/src or add a go.mod file.",
        context={
            "operation": "resolve_import_path",
            "path": str(absolute),
            "gopath": search_path,
        },
    )


class WorkspaceResolver:
    def __init__(self, host: HostEnvironment, logger: BuildLogger) -> None:
        self.host = host
        self.logger = logger

    def search_path(self) -> str:
        return self.host.gopath or self.host.default_gopath

    def resolve(self, repository: str) -> WorkspaceResolution:
        """Decide the dependency mode and canonical identity for a containerised build."""
        if not is_local_source(repository):
            return WorkspaceResolution(
                repository=repository,
                local=False,
                uses_modules=self.host.go111module == "on",
            )

        if uses_modules(repository):
            return WorkspaceResolution(
                repository=repository,
                local=True,
                uses_modules=True,
                source_path=Path(os.path.abspath(repository)),
            )

        identity = resolve_import_path(repository, self.search_path())
        if uses_modules(repository):
            return WorkspaceResolution(
                repository=identity,
                local=True,
                uses_modules=True,
                source_path=Path(os.path.abspath(repository)),
            )
        self.logger.println("INFO: go.mod not found. Skipping go modules")

        gopath = self.host.gopath
        if not gopath:
            gopath = self.host.default_gopath
            self.logger.printf("INFO: No $GOPATH is set - defaulting to %s", gopath)
        if not gopath:
            raise ResolutionError(
                "No $GOPATH is set or forwarded to gocross.",
                hint="Export GOPATH or convert the package to Go modules.",
                context={"operation": "resolve", "repository": repository},
            )
        return WorkspaceResolution(
            repository=identity,
            local=True,
            uses_modules=False,
            source_path=Path(os.path.abspath(repository)),
            search_path=gopath,
        )

    def resolve_contained(self, repository: str) -> WorkspaceResolution:
        """Reduced resolution for builds running inside the execution image."""
        if not is_local_source(repository):
            return WorkspaceResolution(
                repository=repository,
                local=False,
                uses_modules=self.host.go111module != "off",
            )
        modules = uses_modules(repository)
        if modules:
            try:
                identity = resolve_import_path(repository, self.search_path())
            except ResolutionError:
                # Module sources need not live under GOPATH.
                identity = os.path.abspath(repository)
        else:
            identity = resolve_import_path(repository, self.search_path())
            self.logger.println("INFO: Don't use go modules (go.mod not found)")
        return WorkspaceResolution(
            repository=identity,
            local=True,
            uses_modules=modules,
            source_path=Path(os.path.abspath(repository)),
            search_path=self.search_path(),
        )
