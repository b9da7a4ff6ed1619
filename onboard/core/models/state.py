"""
RunState — the persisted record of completed tools.

Serialized to ``<app dir>/state.json`` as::

    {"completed_tools": {"homebrew": "2026-03-02T10:14:55+00:00", ...}}

The engine is the only writer: it marks a tool completed immediately
after its installer succeeds, and never in simulate-only mode.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string (seconds precision)."""
    return datetime.now(UTC).replace(microsecond=0).isoformat()


class RunState(BaseModel):
    """Tool id → ISO-8601 UTC completion timestamp."""

    completed_tools: dict[str, str] = Field(default_factory=dict)

    def is_completed(self, tool_id: str) -> bool:
        return str(tool_id) in self.completed_tools

    def mark_completed(self, tool_id: str, at: str | None = None) -> None:
        """Record (or refresh) the completion time of a tool."""
        self.completed_tools[str(tool_id)] = at or _now_iso()

    def completed_at(self, tool_id: str) -> str | None:
        return self.completed_tools.get(str(tool_id))

    def clear(self) -> None:
        self.completed_tools.clear()
