"""Logging capability injected into every build component that traces."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol


class BuildLogger(Protocol):
    def print(self, *values: object) -> None:
        """Emit values as a single message."""

    def printf(self, fmt: str, *args: object) -> None:
        """Emit a %-style formatted message."""

    def println(self, *values: object) -> None:
        """Emit values separated by spaces as one line."""


def _join(values: tuple[object, ...]) -> str:
    return " ".join(str(value) for value in values)


def _format(fmt: str, args: tuple[object, ...]) -> str:
    return fmt % args if args else fmt


def _level_of(message: str) -> str:
    prefix, sep, _ = message.partition(":")
    if sep and prefix in {"INFO", "DBG", "WARNING", "ERROR"}:
        return {"DBG": "debug"}.get(prefix, prefix.lower())
    return "info"


@dataclass(slots=True)
class StdlibLogger:
    """Adapts a :class:`logging.Logger`; ``DBG:``/``WARNING:``/``ERROR:`` prefixes pick the level."""

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("gocross"))

    def print(self, *values: object) -> None:
        self._emit(_join(values))

    def printf(self, fmt: str, *args: object) -> None:
        self._emit(_format(fmt, args))

    def println(self, *values: object) -> None:
        self._emit(_join(values))

    def _emit(self, message: str) -> None:
        level = logging.getLevelName(_level_of(message).upper())
        self.logger.log(level, message.rstrip("\n"))


@dataclass(slots=True)
class StructuredLogger:
    records: list[dict[str, Any]] = field(default_factory=list)
    operation: str = "build"

    def print(self, *values: object) -> None:
        self.log(message=_join(values))

    def printf(self, fmt: str, *args: object) -> None:
        self.log(message=_format(fmt, args))

    def println(self, *values: object) -> None:
        self.log(message=_join(values))

    def log(
        self,
        *,
        message: str,
        level: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level or _level_of(message),
            "operation": self.operation,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)

    def messages(self) -> list[str]:
        return [record["message"] for record in self.records]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path


__all__ = ["BuildLogger", "StdlibLogger", "StructuredLogger"]
