"""
Domain models — Pydantic types for the orchestrator.

All models are re-exported here for convenient access:

    from onboard.core.models import ToolId, ToolSpec, RunState, InstallResult
"""

from onboard.core.models.result import InstallResult
from onboard.core.models.state import RunState
from onboard.core.models.tool import Phase, ToolId, ToolSpec

__all__ = [
    "InstallResult",
    "Phase",
    "RunState",
    "ToolId",
    "ToolSpec",
]
