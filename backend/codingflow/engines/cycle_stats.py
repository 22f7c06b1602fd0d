"""Cycle statistics: completion, capacity, and velocity for one cycle."""

from __future__ import annotations

from collections.abc import Iterable

from codingflow.models.cycle import Cycle
from codingflow.models.issue import Issue, IssueStatus
from codingflow.models.stats import CycleStats
from codingflow.store.entity_store import EntityStore


def compute_cycle_stats(issues: Iterable[Issue], capacity: float) -> CycleStats:
    """Aggregate a cycle's issues.

    Backlog and todo are merged into ``backlog``. Hours sum only the issues
    that carry a value; missing estimates contribute nothing.
    """
    issues = list(issues)
    return CycleStats(
        total=len(issues),
        completed=sum(1 for i in issues if i.status == IssueStatus.DONE),
        in_progress=sum(1 for i in issues if i.status == IssueStatus.IN_PROGRESS),
        in_review=sum(1 for i in issues if i.status == IssueStatus.IN_REVIEW),
        backlog=sum(1 for i in issues if i.status in (IssueStatus.BACKLOG, IssueStatus.TODO)),
        estimated_hours=sum(i.estimated_hours for i in issues if i.estimated_hours is not None),
        actual_hours=sum(i.actual_hours for i in issues if i.actual_hours is not None),
        capacity=capacity,
    )


class CycleStatsEngine:
    """Reads a cycle and its issues from the store and aggregates them."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def stats(self, cycle: Cycle | str) -> CycleStats:
        cycle_id = cycle.id if isinstance(cycle, Cycle) else cycle
        with self.store.reading() as session:
            stored = self.store.require(session, Cycle, cycle_id)
            issues = self.store.query(session, Issue, Issue.cycle_id == cycle_id)
        return compute_cycle_stats(issues, stored.total_capacity)
