"""Cancellable command execution with live and buffered output capture."""

from __future__ import annotations

import io
import subprocess
import threading
from dataclasses import dataclass
from typing import IO, Protocol, cast

from gocross.errors import BuildCancelledError, ExecutionError
from gocross.models import ExecutionSpec
from gocross.observability import BuildLogger


class Writer(Protocol):
    def write(self, data: bytes) -> int:
        """Consume *data* and return the number of bytes accepted."""


class CommandRunner(Protocol):
    def __call__(
        self,
        spec: ExecutionSpec,
        sink: Writer,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        """Run *spec* to completion, raising ExecutionError on failure."""


@dataclass(slots=True)
class LogWriter:
    """Forwards command output to a build logger, one chunk per call."""

    logger: BuildLogger

    def write(self, data: bytes) -> int:
        self.logger.print(data.decode("utf-8", errors="replace").rstrip("\n"))
        return len(data)


class FanOutWriter:
    """Duplicates every write into each sink in order, stopping at the first failure."""

    def __init__(self, *writers: Writer) -> None:
        self.writers = writers

    def write(self, data: bytes) -> int:
        written = 0
        for writer in self.writers:
            written = writer.write(data)
        return written


class _Pump(threading.Thread):
    def __init__(self, stream: IO[bytes], sink: Writer) -> None:
        super().__init__(daemon=True)
        self.stream = stream
        self.sink = sink
        self.error: Exception | None = None

    def run(self) -> None:
        with self.stream:
            for chunk in iter(self.stream.readline, b""):
                if self.error is not None:
                    continue
                try:
                    self.sink.write(chunk)
                except Exception as exc:  # noqa: BLE001 - reported after the process exits
                    self.error = exc


def run_command(
    spec: ExecutionSpec,
    sink: Writer,
    *,
    cancel: threading.Event | None = None,
    poll_interval: float = 0.1,
) -> None:
    """Run *spec*, streaming stdout to *sink* and stderr to *sink* plus an in-memory buffer."""
    context = {"operation": "run", "command": spec.command_line()}
    if cancel is not None and cancel.is_set():
        raise BuildCancelledError(context=context)

    try:
        process = subprocess.Popen(
            list(spec.argv),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=spec.process_env(),
        )
    except OSError as exc:
        raise ExecutionError(
            f"Failed to start {spec.argv[0]}.",
            hint="Ensure the executable is installed and on PATH.",
            context={**context, "error": str(exc)},
        ) from exc

    stderr_buffer = io.BytesIO()
    pumps = (
        _Pump(cast(IO[bytes], process.stdout), sink),
        _Pump(cast(IO[bytes], process.stderr), FanOutWriter(sink, stderr_buffer)),
    )
    for pump in pumps:
        pump.start()

    while True:
        try:
            returncode = process.wait(timeout=poll_interval)
            break
        except subprocess.TimeoutExpired:
            if cancel is not None and cancel.is_set():
                process.kill()
                process.wait()
                for pump in pumps:
                    pump.join(timeout=5)
                raise BuildCancelledError(
                    context=context,
                    stderr=stderr_buffer.getvalue().decode("utf-8", errors="replace"),
                ) from None

    for pump in pumps:
        pump.join()
    stderr = stderr_buffer.getvalue().decode("utf-8", errors="replace")

    if returncode != 0:
        raise ExecutionError(
            f"Command exited with status {returncode}: {stderr.strip()}",
            context={**context, "returncode": str(returncode), "stderr": stderr},
            stderr=stderr,
        )
    for pump in pumps:
        if pump.error is not None:
            raise ExecutionError(
                "Failed to forward command output.",
                context={**context, "error": str(pump.error)},
            ) from pump.error


__all__ = ["CommandRunner", "FanOutWriter", "LogWriter", "Writer", "run_command"]
