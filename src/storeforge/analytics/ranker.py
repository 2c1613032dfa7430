"""Insight records and their priority ordering."""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from pydantic import BaseModel, Field

from storeforge.tools.contracts import WireModel


class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.CRITICAL: 0, Priority.HIGH: 1, Priority.MEDIUM: 2, Priority.LOW: 3}


class Insight(WireModel):
    """One prioritized finding. Built fresh per query, never stored."""

    priority: Priority
    category: str = Field(..., description="Area of the store the finding is about")
    title: str
    detail: str
    suggested_action: str


class RankedInsights(BaseModel):
    insights: list[Insight] = Field(default_factory=list)
    summary: dict[str, int] = Field(default_factory=dict)

    def to_wire(self) -> dict:
        return {"insights": [i.to_wire() for i in self.insights], "summary": dict(self.summary)}


def rank_insights(insights: Iterable[Insight]) -> RankedInsights:
    """Order by priority, critical first; equal priorities keep emission order."""
    ordered = sorted(insights, key=lambda i: i.priority.rank)
    summary = {p.value: 0 for p in Priority}
    for insight in ordered:
        summary[insight.priority.value] += 1
    summary["total"] = len(ordered)
    return RankedInsights(insights=ordered, summary=summary)
