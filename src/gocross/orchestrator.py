"""Top-level build sequencing.

A build walks ``start -> check_execution_environment -> ensure_image ->
populate_cache -> resolve_config -> execute -> done``; any error moves it to
``failed`` and is re-raised. When the process already runs inside the
cross compilation image the docker states are skipped and the image's
build script is called directly.
"""

from __future__ import annotations

import os
import tempfile
import threading
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from gocross.backends import ContainedBackend, DockerBackend
from gocross.cache import DependencyCache
from gocross.errors import ExecutionError, GocrossError, PreconditionError, ResolutionError
from gocross.models import (
    CONTAINER_DEPS_CACHE,
    BuildRequest,
    BuildResult,
    BuildState,
    ExecutionSpec,
    HostEnvironment,
    MountPlan,
    ResolvedConfig,
)
from gocross.observability import BuildLogger, StdlibLogger
from gocross.runner import CommandRunner, LogWriter, run_command
from gocross.workspace import WorkspaceResolver, plan_mounts

DEFAULT_CACHE_DIRNAME = "xgo-cache"

try:
    VERSION = version("gocross")
except PackageNotFoundError:
    VERSION = "dev"


def default_deps_cache() -> Path:
    return Path(tempfile.gettempdir()) / DEFAULT_CACHE_DIRNAME


class BuildOrchestrator:
    def __init__(
        self,
        request: BuildRequest,
        logger: BuildLogger,
        *,
        host: HostEnvironment | None = None,
        backend: DockerBackend | None = None,
        contained: ContainedBackend | None = None,
        runner: CommandRunner = run_command,
    ) -> None:
        self.request = request
        self.logger = logger
        self.host = host if host is not None else HostEnvironment.from_environ()
        self.runner = runner
        self.backend = backend if backend is not None else DockerBackend(logger=logger, runner=runner)
        self.contained = contained if contained is not None else ContainedBackend()
        self.state = BuildState.START
        self.history: list[BuildState] = [BuildState.START]
        self.config: ResolvedConfig | None = None

    def run(self, cancel: threading.Event | None = None) -> BuildResult:
        request = self.request.with_defaults()
        self.logger.printf("INFO: Starting gocross/%s", VERSION)
        try:
            if self.host.in_container:
                result = self._run_contained(request, cancel)
            else:
                result = self._run_docker(request, cancel)
        except GocrossError as exc:
            failed_in = self.state
            self._enter(BuildState.FAILED)
            raise exc.with_context(state=failed_in.value)
        finally:
            self.logger.println("INFO: Completed!")
        self._enter(BuildState.DONE)
        return result

    def _enter(self, state: BuildState) -> None:
        self.state = state
        self.history.append(state)

    def _run_docker(self, request: BuildRequest, cancel: threading.Event | None) -> BuildResult:
        self._enter(BuildState.CHECK_EXECUTION_ENVIRONMENT)
        self.backend.check()
        if not request.repository:
            raise PreconditionError(
                "go import path is not set",
                hint="Pass a local package path or a remote import path.",
                context={"operation": "build"},
            )

        image = request.image_reference()
        self._enter(BuildState.ENSURE_IMAGE)
        self._ensure_image(image, cancel)

        deps_cache = Path(request.deps_cache) if request.deps_cache else default_deps_cache()
        downloaded = self._populate_cache(request, deps_cache)

        self._enter(BuildState.RESOLVE_CONFIG)
        folder = self._output_folder(request)
        config = ResolvedConfig.from_request(request, deps_cache=deps_cache)
        resolution = WorkspaceResolver(self.host, self.logger).resolve(request.repository)
        config.apply(resolution)
        self.config = config
        plan = MountPlan()
        if resolution.local and not resolution.uses_modules:
            plan = plan_mounts(resolution.search_path, self.logger)
        self.logger.printf("DBG: config: %s", config)
        self.logger.printf("DBG: flags: %s", request.build)

        spec = self.backend.build_invocation(
            image=image,
            config=config,
            options=request.build,
            folder=folder,
            plan=plan,
            module_cache=self.host.module_cache_root,
        )

        self._enter(BuildState.EXECUTE)
        self.logger.printf("INFO: Cross compiling %s package...", config.repository)
        self.logger.printf("INFO: Docker %s", " ".join(spec.argv[1:]))
        self._execute(spec, cancel)
        return BuildResult(
            image=image,
            repository=config.repository,
            uses_modules=config.uses_modules,
            spec=spec,
            downloaded=tuple(downloaded),
        )

    def _run_contained(self, request: BuildRequest, cancel: threading.Event | None) -> BuildResult:
        downloaded = self._populate_cache(request, Path(CONTAINER_DEPS_CACHE))

        self._enter(BuildState.RESOLVE_CONFIG)
        config = ResolvedConfig.from_request(request, deps_cache=Path(CONTAINER_DEPS_CACHE))
        config.apply(WorkspaceResolver(self.host, self.logger).resolve_contained(request.repository))
        self.config = config
        spec = self.contained.build_invocation(config=config, options=request.build)

        self._enter(BuildState.EXECUTE)
        self.logger.printf("INFO: Cross compiling %s package...", config.repository)
        self._execute(spec, cancel)
        return BuildResult(
            image="",
            repository=config.repository,
            uses_modules=config.uses_modules,
            spec=spec,
            downloaded=tuple(downloaded),
        )

    def _ensure_image(self, image: str, cancel: threading.Event | None) -> None:
        if self.backend.image_exists(image):
            self.logger.println("INFO: Docker image found!")
            return
        self.logger.println("not found!")
        self.backend.pull(image, cancel=cancel)
        self._enter(BuildState.ENSURE_IMAGE)

    def _populate_cache(self, request: BuildRequest, root: Path) -> list[Path]:
        if not request.cross_deps.strip():
            return []
        self._enter(BuildState.POPULATE_CACHE)
        return DependencyCache(root, self.logger).populate(request.cross_deps)

    def _output_folder(self, request: BuildRequest) -> Path:
        try:
            if request.out_folder:
                return Path(os.path.abspath(request.out_folder))
            return Path.cwd()
        except OSError as exc:
            raise ResolutionError(
                "Failed to resolve destination path.",
                context={"operation": "resolve_config", "path": request.out_folder, "error": str(exc)},
            ) from exc

    def _execute(self, spec: ExecutionSpec, cancel: threading.Event | None) -> None:
        try:
            self.runner(spec, LogWriter(self.logger), cancel=cancel)
        except ExecutionError as exc:
            raise exc.with_context(operation="cross_compile")


def start_build(
    request: BuildRequest,
    logger: BuildLogger | None = None,
    *,
    host: HostEnvironment | None = None,
    backend: DockerBackend | None = None,
    contained: ContainedBackend | None = None,
    runner: CommandRunner = run_command,
) -> BuildResult:
    """Run one cross compilation to completion."""
    return start_build_ctx(
        None, request, logger, host=host, backend=backend, contained=contained, runner=runner
    )


def start_build_ctx(
    cancel: threading.Event | None,
    request: BuildRequest,
    logger: BuildLogger | None = None,
    *,
    host: HostEnvironment | None = None,
    backend: DockerBackend | None = None,
    contained: ContainedBackend | None = None,
    runner: CommandRunner = run_command,
) -> BuildResult:
    """Like :func:`start_build`, but setting *cancel* stops the running command."""
    orchestrator = BuildOrchestrator(
        request,
        logger or StdlibLogger(),
        host=host,
        backend=backend,
        contained=contained,
        runner=runner,
    )
    return orchestrator.run(cancel=cancel)


__all__ = ["BuildOrchestrator", "VERSION", "default_deps_cache", "start_build", "start_build_ctx"]
