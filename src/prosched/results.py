"""Result values and errors returned across the engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


NOT_FOUND_KIND = "NOT_FOUND"
READ_ONLY_KIND = "READ_ONLY"
TYPE_MISMATCH_KIND = "TYPE_MISMATCH"
UNSUPPORTED_KIND = "UNSUPPORTED"


@dataclass(frozen=True)
class Found:
    value: str
    is_type: bool = False
    tier: int = 1

    def __bool__(self) -> bool:
        return True


class _NotFound:
    _instance: "_NotFound | None" = None

    def __new__(cls) -> "_NotFound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


@dataclass(frozen=True)
class WriteOk:
    is_type: bool = False

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class WriteError:
    kind: str
    message: str

    def __bool__(self) -> bool:
        return False


@dataclass
class MutationResult:
    success_count: int = 0
    fail_count: int = 0
    last_error: str = ""
    critical: bool = False

    @property
    def status(self) -> str:
        if self.critical:
            return "critical"
        if self.fail_count == 0:
            return "ok"
        if self.success_count > 0:
            return "partial"
        return "failed"

    def to_dict(self) -> dict:
        return {
            "success_count": self.success_count,
            "fail_count": self.fail_count,
            "last_error": self.last_error or None,
            "status": self.status,
        }


@dataclass
class ScheduleError(Exception):
    code: str
    message: str
    path: str | None = None
    detail: Any = None

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        base = f"{self.code}: {self.message}"
        return f"{base} (path={self.path})" if self.path else base


@dataclass
class FieldUpdateError(ScheduleError):
    pass
