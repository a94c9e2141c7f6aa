"""Docker-backed cross compilation."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from pathlib import Path

from gocross.backends.base import build_environment
from gocross.errors import ExecutionError, ImageError, PreconditionError
from gocross.models import (
    CONTAINER_BUILD_DIR,
    CONTAINER_DEPS_CACHE,
    CONTAINER_GOPATH,
    CONTAINER_SOURCE_DIR,
    BuildOptions,
    ExecutionSpec,
    MountPlan,
    MountSpec,
    ResolvedConfig,
)
from gocross.observability import BuildLogger, StdlibLogger
from gocross.runner import CommandRunner, LogWriter, run_command


class _Discard:
    def write(self, data: bytes) -> int:
        return len(data)


@dataclass(slots=True)
class DockerBackend:
    name: str = "docker"
    tool: str = "docker"
    logger: BuildLogger = field(default_factory=StdlibLogger)
    runner: CommandRunner = run_command

    def check(self) -> None:
        """Fail unless the docker daemon answers ``docker version``."""
        self.logger.println("INFO: Checking docker installation...")
        try:
            self.runner(ExecutionSpec(argv=(self.tool, "version")), LogWriter(self.logger))
        except ExecutionError as exc:
            raise PreconditionError(
                "Failed to check docker installation.",
                hint="Install docker and make sure the daemon is running.",
                context={"backend": self.name, "operation": "check", "error": exc.message},
            ) from exc
        self.logger.println("")

    def image_exists(self, image: str) -> bool:
        self.logger.printf("INFO: Checking for required docker image %s... ", image)
        try:
            self.runner(ExecutionSpec(argv=(self.tool, "image", "inspect", image)), _Discard())
        except ExecutionError:
            return False
        return True

    def pull(self, image: str, *, cancel: threading.Event | None = None) -> None:
        self.logger.printf("INFO: Pulling %s from docker registry...", image)
        try:
            self.runner(
                ExecutionSpec(argv=(self.tool, "pull", image)),
                LogWriter(self.logger),
                cancel=cancel,
            )
        except ExecutionError as exc:
            raise ImageError(
                "Failed to pull docker image from the registry.",
                hint="Check the image reference and registry credentials.",
                context={
                    "backend": self.name,
                    "operation": "pull",
                    "image": image,
                    "stderr": exc.stderr,
                },
            ) from exc

    def build_invocation(
        self,
        *,
        image: str,
        config: ResolvedConfig,
        options: BuildOptions,
        folder: Path,
        plan: MountPlan,
        module_cache: str,
    ) -> ExecutionSpec:
        """Assemble the ``docker run`` vector for one cross compilation."""
        argv: list[str] = [self.tool, "run", "--rm"]

        def volume(mount: MountSpec) -> None:
            argv.extend(["-v", mount.volume()])

        def setenv(key: str, value: str) -> None:
            argv.extend(["-e", f"{key}={value}"])

        volume(MountSpec(source=folder, target=CONTAINER_BUILD_DIR))
        volume(MountSpec(source=config.deps_cache, target=CONTAINER_DEPS_CACHE, read_only=True))
        for key, value in build_environment(config, options).items():
            setenv(key, value)

        if config.uses_modules:
            setenv("GO111MODULE", "on")
            volume(MountSpec(source=Path(module_cache), target=CONTAINER_GOPATH))
            if config.go_proxy:
                setenv("GOPROXY", config.go_proxy)
            # Remote module builds are fetched inside the container, nothing to mount.
            if config.local:
                source = config.source_path or Path(os.path.abspath(config.repository))
                volume(MountSpec(source=source, target=CONTAINER_SOURCE_DIR))
                vendor = source / "vendor"
                if vendor.is_dir():
                    setenv("FLAG_MOD", "vendor")
                    self.logger.println("INFO: Using vendored Go module dependencies")
        else:
            setenv("GO111MODULE", "off")
            for mount in plan.entries():
                volume(mount)
            setenv("EXT_GOPATH", plan.container_gopath())

        argv.extend([image, config.repository])
        return ExecutionSpec(argv=tuple(argv))
