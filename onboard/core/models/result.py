"""
InstallResult — what an installer hands back to the engine.

Installers signal hard failures by raising (``InstallError`` or
``CommandError``); a returned result is either ``ok`` or ``skipped``.
A ``failed`` result is still honored by the engine for installers that
prefer to report rather than raise.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class InstallResult(BaseModel):
    """Outcome of one installer invocation."""

    tool: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    message: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the tool is now installed (freshly or already)."""
        return self.status in ("ok", "skipped")

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, tool: str, message: str = "", **kwargs: Any) -> InstallResult:
        """Create a success result."""
        return cls(tool=str(tool), status="ok", message=message, **kwargs)

    @classmethod
    def skip(cls, tool: str, reason: str = "", **kwargs: Any) -> InstallResult:
        """Create a result for work that was already done."""
        return cls(tool=str(tool), status="skipped", message=reason, **kwargs)

    @classmethod
    def failure(cls, tool: str, error: str, **kwargs: Any) -> InstallResult:
        """Create a failure result."""
        return cls(tool=str(tool), status="failed", error=error, **kwargs)
