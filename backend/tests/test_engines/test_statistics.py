"""Tests for cycle and project statistics."""

import os
import sys
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest

from codingflow.engines.cycle_stats import compute_cycle_stats
from codingflow.engines.project_stats import compute_project_stats
from codingflow.errors import NotFoundError
from codingflow.models.issue import Issue, IssueStatus

START = datetime(2026, 3, 2, tzinfo=timezone.utc)


def _sprint(ws, capacity=40.0, project_id=None):
    return ws.cycles.create_cycle("Sprint", START, START + timedelta(days=14),
                                  capacity=capacity, project_id=project_id)


# === Cycle stats ===


class TestCycleStats:
    def test_empty_cycle_has_zero_rates(self, ws):
        stats = ws.cycle_stats.stats(_sprint(ws))
        assert stats.total == 0
        assert stats.completion_rate == 0.0
        assert stats.capacity_used == 0.0
        assert stats.velocity == 0.0

    def test_zero_capacity_does_not_divide(self, ws, project):
        cycle = _sprint(ws, capacity=0)
        ws.issues.create_issue("x", estimated_hours=5, cycle_id=cycle.id, project_id=project.id)
        assert ws.cycle_stats.stats(cycle.id).capacity_used == 0.0

    def test_counts_hours_and_derived_values(self, ws, project):
        cycle = _sprint(ws, capacity=20)
        rows = [
            (IssueStatus.DONE, 4.0, 5.0),
            (IssueStatus.DONE, None, 1.5),
            (IssueStatus.IN_PROGRESS, 6.0, None),
            (IssueStatus.IN_REVIEW, None, None),
            (IssueStatus.TODO, 2.0, None),
            (IssueStatus.BACKLOG, None, None),
        ]
        for n, (status, est, actual) in enumerate(rows):
            issue = ws.issues.create_issue(f"i{n}", status=status, estimated_hours=est,
                                           cycle_id=cycle.id, project_id=project.id)
            if actual is not None:
                issue.actual_hours = actual
                ws.issues.update_issue(issue)
        ws.issues.create_issue("outside", status=IssueStatus.DONE, estimated_hours=100, project_id=project.id)

        stats = ws.cycle_stats.stats(cycle.id)

        assert stats.total == 6
        assert stats.completed == 2
        assert stats.in_progress == 1
        assert stats.in_review == 1
        assert stats.backlog == 2  # backlog + todo
        assert stats.estimated_hours == 12.0
        assert stats.actual_hours == 6.5
        assert stats.capacity == 20
        assert abs(stats.completion_rate - 33.33) < 0.01
        assert stats.capacity_used == 60.0
        assert stats.velocity == 4.0

    def test_velocity_ignores_estimates(self):
        issues = [Issue(title="a", status=IssueStatus.DONE, estimated_hours=13)]
        assert compute_cycle_stats(issues, 40).velocity == 2.0

    def test_missing_cycle(self, ws):
        with pytest.raises(NotFoundError):
            ws.cycle_stats.stats("missing")


# === Project stats ===


def test_project_stats_end_to_end(ws):
    """P with A(backlog), B(done, 4h), C(done, 6h)."""
    p = ws.projects.create_project("P")
    ws.issues.create_issue("A", status=IssueStatus.BACKLOG, project_id=p.id)
    ws.issues.create_issue("B", status=IssueStatus.DONE, estimated_hours=4, project_id=p.id)
    ws.issues.create_issue("C", status=IssueStatus.DONE, estimated_hours=6, project_id=p.id)

    stats = ws.project_stats.stats(p)

    assert stats.model_dump(exclude={"completion_rate"}) == {
        "total": 3, "completed": 2, "backlog": 1, "in_progress": 0, "in_review": 0, "ai_generated": 0,
    }
    assert abs(stats.completion_rate - 66.67) < 0.01
    print("  PASS: project_stats_end_to_end")


def test_project_backlog_excludes_todo():
    issues = [
        Issue(title="a", status=IssueStatus.BACKLOG),
        Issue(title="b", status=IssueStatus.TODO),
        Issue(title="c", status=IssueStatus.TODO, is_ai_generated=True),
    ]
    stats = compute_project_stats(issues)
    assert stats.total == 3
    assert stats.backlog == 1
    assert stats.ai_generated == 1
    print("  PASS: project_backlog_excludes_todo")


def test_project_stats_empty_and_missing(ws, project):
    stats = ws.project_stats.stats(project.id)
    assert stats.total == 0 and stats.completion_rate == 0.0
    with pytest.raises(NotFoundError):
        ws.project_stats.stats("missing")
    print("  PASS: project_stats_empty_and_missing")
