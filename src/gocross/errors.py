"""Typed build error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across the build pipeline."""

    PRECONDITION = "E_PRECONDITION"
    RESOLUTION = "E_RESOLUTION"
    CACHE = "E_CACHE"
    IMAGE = "E_IMAGE"
    EXECUTION = "E_EXECUTION"
    CANCELLED = "E_CANCELLED"


class GocrossError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    @property
    def message(self) -> str:
        return self.args[0] if self.args else ""

    def with_context(self, **extra: str) -> GocrossError:
        """Add boundary context without overwriting keys set closer to the failure."""
        for key, value in extra.items():
            self.context.setdefault(key, value)
        return self

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class PreconditionError(GocrossError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.PRECONDITION, hint=hint, context=context)


class ResolutionError(GocrossError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.RESOLUTION, hint=hint, context=context)


class CacheError(GocrossError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CACHE, hint=hint, context=context)


class ImageError(GocrossError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.IMAGE, hint=hint, context=context)


class ExecutionError(GocrossError):
    """Child process failure; ``stderr`` keeps the full captured diagnostics."""

    stderr: str

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
        stderr: str = "",
        code: ErrorCode = ErrorCode.EXECUTION,
    ) -> None:
        super().__init__(message, code=code, hint=hint, context=context)
        self.stderr = stderr


class BuildCancelledError(ExecutionError):
    def __init__(
        self,
        message: str = "Build was cancelled before the command completed.",
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(
            message,
            hint=hint,
            context=context,
            stderr=stderr,
            code=ErrorCode.CANCELLED,
        )


__all__ = [
    "BuildCancelledError",
    "CacheError",
    "ErrorCode",
    "ExecutionError",
    "GocrossError",
    "ImageError",
    "PreconditionError",
    "ResolutionError",
]
