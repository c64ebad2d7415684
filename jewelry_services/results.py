"""
Result shapes returned by the actions boundary.

Every operation returns an ``ActionResult``: ``success=True`` with optional
``data`` and ``message``, or ``success=False`` with a human-readable
``error`` and a stable machine ``code``.  ``to_dict()`` is the wire shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ActionResult:
    """Uniform outcome of an inventory action."""

    success: bool
    data: Any = None
    message: str | None = None
    error: str | None = None
    code: str | None = None

    @classmethod
    def ok(cls, data: Any = None, message: str | None = None) -> ActionResult:
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, code: str, error: str) -> ActionResult:
        return cls(success=False, error=error, code=code)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            payload: dict[str, Any] = {"success": True}
            if self.data is not None:
                payload["data"] = self.data
            if self.message is not None:
                payload["message"] = self.message
            return payload
        return {"success": False, "error": self.error, "code": self.code}


@dataclass(frozen=True)
class BulkStatusResult:
    """Tally of a bulk status update; each item was its own transaction."""

    updated_count: int = 0
    failed_count: int = 0
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def message(self) -> str:
        text = f"Updated {self.updated_count} items"
        if self.failed_count:
            text += f", {self.failed_count} failed"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "updated_count": self.updated_count,
            "failed_count": self.failed_count,
            "failures": dict(self.failures),
        }
