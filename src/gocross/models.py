"""Core typed dataclasses for build requests, resolved configuration, and invocations."""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from pathlib import Path
from types import MappingProxyType

DOCKER_DIST = "ghcr.io/crazy-max/xgo"
DEFAULT_GO_VERSION = "latest"
DEFAULT_PROXY = "https://proxy.golang.org,direct"
DEFAULT_TARGETS = ("*/*",)
DEFAULT_BUILD_MODE = "default"

# Fixed locations inside the execution image.
CONTAINER_BUILD_DIR = "/build"
CONTAINER_DEPS_CACHE = "/deps-cache"
CONTAINER_SOURCE_DIR = "/source"
CONTAINER_GOPATH = "/go"
CONTAINER_EXT_GOPATH = "/ext-go"

IN_CONTAINER_ENV = "XGO_IN_XGO"


class BuildState(StrEnum):
    START = "start"
    CHECK_EXECUTION_ENVIRONMENT = "check_execution_environment"
    ENSURE_IMAGE = "ensure_image"
    POPULATE_CACHE = "populate_cache"
    RESOLVE_CONFIG = "resolve_config"
    EXECUTE = "execute"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class BuildOptions:
    """Flags forwarded to ``go build`` inside the execution image."""

    verbose: bool = False
    steps: bool = False
    race: bool = False
    tags: str = ""
    ldflags: str = ""
    mode: str = ""
    vcs: str = ""
    trimpath: bool = False

    def with_defaults(self) -> BuildOptions:
        if self.mode:
            return self
        return replace(self, mode=DEFAULT_BUILD_MODE)


@dataclass(frozen=True, slots=True)
class BuildRequest:
    repository: str = ""
    go_version: str = ""
    go_proxy: str = ""
    src_package: str = ""
    src_remote: str = ""
    src_branch: str = ""
    out_prefix: str = ""
    out_folder: str = ""
    cross_deps: str = ""
    cross_args: str = ""
    targets: tuple[str, ...] = ()
    docker_repo: str = ""
    docker_image: str = ""
    deps_cache: str = ""
    build: BuildOptions = field(default_factory=BuildOptions)

    def with_defaults(self) -> BuildRequest:
        """Return a copy with every unset default filled in."""
        return replace(
            self,
            go_version=self.go_version or DEFAULT_GO_VERSION,
            go_proxy=self.go_proxy or DEFAULT_PROXY,
            targets=tuple(self.targets) or DEFAULT_TARGETS,
            build=self.build.with_defaults(),
        )

    def image_reference(self) -> str:
        if self.docker_image:
            return self.docker_image
        version = self.go_version or DEFAULT_GO_VERSION
        if self.docker_repo:
            return f"{self.docker_repo}:{version}"
        return f"{DOCKER_DIST}:{version}"


@dataclass(frozen=True, slots=True)
class HostEnvironment:
    """Snapshot of the host variables the build pipeline depends on."""

    gopath: str = ""
    go111module: str = ""
    in_container: bool = False
    home: str = ""

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> HostEnvironment:
        env = os.environ if environ is None else environ
        return cls(
            gopath=env.get("GOPATH", ""),
            go111module=env.get("GO111MODULE", ""),
            in_container=env.get(IN_CONTAINER_ENV, "") == "1",
            home=env.get("HOME", "") or str(Path.home()),
        )

    @property
    def default_gopath(self) -> str:
        """Toolchain default used when ``GOPATH`` is not set."""
        if not self.home:
            return ""
        return str(Path(self.home) / "go")

    @property
    def module_cache_root(self) -> str:
        for entry in self.gopath.split(os.pathsep):
            if entry:
                return entry
        return self.default_gopath


@dataclass(frozen=True, slots=True)
class WorkspaceResolution:
    repository: str
    local: bool
    uses_modules: bool
    source_path: Path | None = None
    search_path: str = ""


@dataclass(slots=True)
class ResolvedConfig:
    """Configuration assembled while the orchestrator walks its states."""

    repository: str
    deps_cache: Path
    package: str = ""
    remote: str = ""
    branch: str = ""
    prefix: str = ""
    dependencies: str = ""
    arguments: str = ""
    targets: tuple[str, ...] = DEFAULT_TARGETS
    go_proxy: str = ""
    uses_modules: bool = False
    local: bool = False
    source_path: Path | None = None

    @classmethod
    def from_request(cls, request: BuildRequest, *, deps_cache: Path) -> ResolvedConfig:
        return cls(
            repository=request.repository,
            deps_cache=deps_cache,
            package=request.src_package,
            remote=request.src_remote,
            branch=request.src_branch,
            prefix=request.out_prefix,
            dependencies=request.cross_deps,
            arguments=request.cross_args,
            targets=request.targets,
            go_proxy=request.go_proxy,
        )

    def apply(self, resolution: WorkspaceResolution) -> None:
        self.repository = resolution.repository
        self.uses_modules = resolution.uses_modules
        self.local = resolution.local
        self.source_path = resolution.source_path


@dataclass(frozen=True, slots=True)
class MountSpec:
    source: Path
    target: str
    read_only: bool = False

    def volume(self) -> str:
        value = f"{self.source}:{self.target}"
        return f"{value}:ro" if self.read_only else value


@dataclass(frozen=True, slots=True)
class MountPlan:
    """Host to container bind mappings for a legacy GOPATH workspace."""

    sources: tuple[Path, ...] = ()
    targets: tuple[str, ...] = ()
    paths: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not len(self.sources) == len(self.targets) == len(self.paths):
            raise ValueError("MountPlan sequences must have equal length.")

    def __len__(self) -> int:
        return len(self.sources)

    def entries(self) -> Iterator[MountSpec]:
        for source, target in zip(self.sources, self.targets):
            yield MountSpec(source=source, target=target, read_only=True)

    def container_gopath(self) -> str:
        return ":".join(self.paths)


@dataclass(frozen=True, slots=True)
class ExecutionSpec:
    argv: tuple[str, ...]
    env: Mapping[str, str] = field(default_factory=dict)
    inherit_env: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "argv", tuple(self.argv))
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    def command_line(self) -> str:
        return " ".join(self.argv)

    def process_env(self, base: Mapping[str, str] | None = None) -> dict[str, str] | None:
        """Environment handed to the child; ``None`` inherits the parent unchanged."""
        if not self.env:
            return None
        merged = dict(os.environ if base is None else base) if self.inherit_env else {}
        merged.update(self.env)
        return merged


@dataclass(frozen=True, slots=True)
class BuildResult:
    image: str
    repository: str
    uses_modules: bool
    spec: ExecutionSpec
    downloaded: tuple[Path, ...] = ()
