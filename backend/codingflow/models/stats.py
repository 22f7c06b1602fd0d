"""Statistics value objects (not SQL tables; recomputed on every call)."""

from __future__ import annotations

from pydantic import BaseModel, computed_field

from codingflow.models.issue import AITool

# Every completed issue is deemed to cost this many hours for velocity,
# regardless of its estimate.
HOURS_PER_COMPLETED_ISSUE = 2.0


class CycleStats(BaseModel):
    """Issue counts and hour totals for one cycle.

    ``backlog`` merges the backlog and todo statuses.
    """

    total: int = 0
    completed: int = 0
    in_progress: int = 0
    in_review: int = 0
    backlog: int = 0
    estimated_hours: float = 0.0
    actual_hours: float = 0.0
    capacity: float = 40.0

    @computed_field
    @property
    def completion_rate(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.completed / self.total * 100

    @computed_field
    @property
    def capacity_used(self) -> float:
        if self.capacity <= 0:
            return 0.0
        return self.estimated_hours / self.capacity * 100

    @computed_field
    @property
    def velocity(self) -> float:
        return self.completed * HOURS_PER_COMPLETED_ISSUE


class ProjectStats(BaseModel):
    """Issue counts for one project.

    ``backlog`` counts only the backlog status; todo issues are part of
    ``total`` without a bucket of their own.
    """

    total: int = 0
    completed: int = 0
    in_progress: int = 0
    in_review: int = 0
    backlog: int = 0
    ai_generated: int = 0

    @computed_field
    @property
    def completion_rate(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.completed / self.total * 100


class AIStats(BaseModel):
    """Today's AI activity plus the overall AI-generated issue ratio."""

    today_interactions: int = 0
    total_tokens_today: int = 0
    most_used_tool: AITool = AITool.UNKNOWN
    ai_generation_rate: float = 0.0  # percent of all issues
