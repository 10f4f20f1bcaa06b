from __future__ import annotations

from typing import Any, Dict, List, Optional


class TaicaiError(Exception):
    pass


class InvalidRequest(TaicaiError):
    """Request rejected before any strategy runs. Never retried."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        required: Optional[List[str]] = None,
        available: Optional[List[str]] = None,
        value: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.required = required
        self.available = available
        self.value = value

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": False, "error": self.message}
        if self.field:
            out["field"] = self.field
            if self.value is not None:
                out[self.field] = self.value
        if self.required:
            out["required"] = self.required
        if self.available:
            out["available"] = self.available
        return out


class SourceUnavailable(TaicaiError):
    """One source adapter failed. Absorbed as an empty contribution."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class StrategyFailure(TaicaiError):
    """A school raised while generating numbers."""

    def __init__(self, school: str, cause: BaseException):
        super().__init__(f"{school} failed: {cause}")
        self.school = school
        self.cause = cause
