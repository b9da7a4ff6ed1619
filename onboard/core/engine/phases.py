"""
Phase classifier (pure).

Partitions a resolved plan into the public-network phase and the
private-network phase.  Relative order is preserved in both halves;
anything not explicitly marked public needs the private network.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from onboard.core.data.catalog import TOOL_CATALOG
from onboard.core.models.tool import ToolSpec

PUBLIC_PHASE = "phase1"
PRIVATE_PHASE = "phase3"


@dataclass
class PhasePlan:
    """A resolved plan split by network phase."""

    public: list[str] = field(default_factory=list)
    private: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.public) + len(self.private)

    def to_dict(self) -> dict:
        return {"public": list(self.public), "private": list(self.private)}


def classify(
    plan: Sequence[str],
    catalog: Mapping[str, ToolSpec] = TOOL_CATALOG,
) -> PhasePlan:
    """Split *plan* into (public, private) sub-sequences."""
    result = PhasePlan()
    for tool_id in plan:
        spec = catalog.get(tool_id)
        if spec is not None and spec.is_public:
            result.public.append(tool_id)
        else:
            result.private.append(tool_id)
    return result
