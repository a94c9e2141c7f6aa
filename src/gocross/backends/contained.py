"""In-image build execution.

When gocross itself runs inside the cross compilation image (``XGO_IN_XGO=1``)
there is no container to start: the image's ``xgo-build`` script is invoked
directly with the same variables ``docker run`` would have injected.
"""

from __future__ import annotations

from dataclasses import dataclass

from gocross.backends.base import build_environment
from gocross.models import BuildOptions, ExecutionSpec, ResolvedConfig

CONTAINED_BUILD_COMMAND = "xgo-build"
LOCAL_BUILD_SENTINEL = "/non-existent-path-to-signal-local-build"


@dataclass(slots=True)
class ContainedBackend:
    name: str = "contained"
    tool: str = CONTAINED_BUILD_COMMAND

    def build_invocation(self, *, config: ResolvedConfig, options: BuildOptions) -> ExecutionSpec:
        env = build_environment(config, options)
        if config.local and not config.uses_modules:
            env["GO111MODULE"] = "off"
        if config.local:
            env["EXT_GOPATH"] = LOCAL_BUILD_SENTINEL
        return ExecutionSpec(argv=(self.tool, config.repository), env=env, inherit_env=True)
