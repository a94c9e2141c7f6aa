"""Shared test fixtures."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from gocross.errors import ExecutionError
from gocross.models import ExecutionSpec, HostEnvironment
from gocross.observability import StructuredLogger
from gocross.runner import Writer


@dataclass
class FakeRunner:
    """Records every command instead of spawning it; prefixes in ``failures`` raise."""

    calls: list[ExecutionSpec] = field(default_factory=list)
    failures: dict[tuple[str, ...], ExecutionError] = field(default_factory=dict)
    cancels: list[threading.Event | None] = field(default_factory=list)

    def __call__(
        self,
        spec: ExecutionSpec,
        sink: Writer,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self.calls.append(spec)
        self.cancels.append(cancel)
        for prefix, error in self.failures.items():
            if spec.argv[: len(prefix)] == prefix:
                raise error
        sink.write(b"ok\n")

    def argvs(self) -> list[tuple[str, ...]]:
        return [call.argv for call in self.calls]


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def gopath(tmp_path: Path) -> Path:
    root = tmp_path / "gopath"
    (root / "src").mkdir(parents=True)
    return root


@pytest.fixture
def host(gopath: Path, tmp_path: Path) -> HostEnvironment:
    return HostEnvironment(gopath=str(gopath), home=str(tmp_path / "home"))
