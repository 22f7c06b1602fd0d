"""Tests for table models, enums, query criteria, and stats value objects."""

import os
import sys
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
os.environ.setdefault("DATABASE_URL", "sqlite://")

from codingflow.models.cycle import Cycle
from codingflow.models.issue import AITool, Issue, IssuePriority, IssueStatus, IssueType
from codingflow.models.project import DEFAULT_LABELS, IssueLabel, Project
from codingflow.models.query import IssueQuery, SortOrder
from codingflow.models.stats import AIStats, CycleStats, ProjectStats
from codingflow.models.tracking import AITrackingEvent, ContextSnapshot


NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


# === Defaults ===


def test_issue_defaults():
    issue = Issue(title="Write tests")
    assert issue.status == IssueStatus.BACKLOG
    assert issue.priority == IssuePriority.MEDIUM
    assert issue.type == IssueType.TASK
    assert issue.is_ai_generated is False
    assert issue.ai_generation_count == 0
    assert issue.ai_context_tokens is None
    assert issue.estimated_hours is None
    assert issue.project_id is None
    assert issue.created_at.tzinfo is not None
    assert len(issue.id) == 36
    print("  PASS: issue_defaults")


def test_ids_are_unique():
    assert Issue(title="a").id != Issue(title="b").id
    print("  PASS: ids_are_unique")


def test_project_and_label_defaults():
    p = Project(name="P")
    assert p.icon == "folder.fill"
    assert p.color == "007AFF"
    label = IssueLabel(name="L")
    assert label.color == "FF9500"
    assert label.icon == "tag.fill"
    assert label.project_id is None
    print("  PASS: project_and_label_defaults")


def test_default_labels_are_five_distinct_names():
    names = [name for name, _, _ in DEFAULT_LABELS]
    assert len(names) == 5
    assert len(set(names)) == 5
    print("  PASS: default_labels_are_five_distinct_names")


def test_tracking_defaults():
    event = AITrackingEvent(event_type="generation")
    assert event.ai_tool == "unknown"
    assert event.code_files_changed == []
    assert event.tokens_used == 0
    snap = ContextSnapshot()
    assert snap.completion_percentage == 0.0
    assert snap.key_files == [] and snap.pending_items == []
    print("  PASS: tracking_defaults")


# === Enums ===


def test_priority_ordering():
    assert IssuePriority.URGENT < IssuePriority.HIGH < IssuePriority.MEDIUM < IssuePriority.LOW
    assert int(IssuePriority.URGENT) == 0
    assert int(IssuePriority.LOW) == 3
    print("  PASS: priority_ordering")


def test_status_display_names():
    assert IssueStatus.TODO.display_name == "To Do"
    assert IssueStatus.IN_PROGRESS.display_name == "In Progress"
    assert [s.value for s in IssueStatus] == ["backlog", "todo", "in_progress", "in_review", "done"]
    print("  PASS: status_display_names")


def test_ai_tool_parse_unknown():
    assert AITool.parse("cursor") == AITool.CURSOR
    assert AITool.parse("some-new-tool") == AITool.UNKNOWN
    print("  PASS: ai_tool_parse_unknown")


# === Cycle derived values ===


class TestCycleDerived:
    def _cycle(self, start_offset_days: float, end_offset_days: float) -> Cycle:
        return Cycle(
            name="Sprint",
            start_date=NOW + timedelta(days=start_offset_days),
            end_date=NOW + timedelta(days=end_offset_days),
        )

    def test_active_within_range(self):
        assert self._cycle(-1, 1).is_active_at(NOW)

    def test_active_on_boundaries(self):
        assert self._cycle(0, 3).is_active_at(NOW)
        assert self._cycle(-3, 0).is_active_at(NOW)

    def test_inactive_when_upcoming_or_over(self):
        assert not self._cycle(1, 5).is_active_at(NOW)
        assert not self._cycle(-5, -1).is_active_at(NOW)

    def test_days_remaining_whole_days(self):
        assert self._cycle(-1, 3).days_remaining_at(NOW) == 3
        assert self._cycle(-1, 3.5).days_remaining_at(NOW) == 3

    def test_days_remaining_negative_when_overdue(self):
        assert self._cycle(-10, -2).days_remaining_at(NOW) == -2

    def test_cycle_defaults(self):
        c = self._cycle(0, 7)
        assert c.total_capacity == 40.0
        assert c.planned_points == 0.0
        assert c.is_archived is False


# === Query criteria ===


def test_query_defaults_have_no_filters():
    q = IssueQuery()
    assert q.active_filter_count == 0
    assert q.has_search is False
    assert q.sort_order == SortOrder.UPDATED_DESC
    print("  PASS: query_defaults_have_no_filters")


def test_query_active_filter_count():
    q = IssueQuery(project_id="p", status=IssueStatus.DONE, only_ai_generated=True, search_text="x")
    assert q.active_filter_count == 3
    assert q.has_search
    print("  PASS: query_active_filter_count")


def test_query_cleared_keeps_sort_order():
    q = IssueQuery(priority=IssuePriority.HIGH, search_text="x", sort_order=SortOrder.CREATED_DESC)
    cleared = q.cleared()
    assert cleared.priority is None
    assert cleared.search_text == ""
    assert cleared.sort_order == SortOrder.CREATED_DESC
    print("  PASS: query_cleared_keeps_sort_order")


# === Stats value objects ===


class TestStatsModels:
    def test_cycle_stats_zero_total_and_capacity(self):
        stats = CycleStats(capacity=0)
        assert stats.completion_rate == 0.0
        assert stats.capacity_used == 0.0
        assert stats.velocity == 0.0

    def test_cycle_stats_derived(self):
        stats = CycleStats(total=4, completed=1, estimated_hours=10, capacity=40)
        assert stats.completion_rate == 25.0
        assert stats.capacity_used == 25.0
        assert stats.velocity == 2.0

    def test_computed_fields_are_serialized(self):
        dumped = CycleStats(total=2, completed=2).model_dump()
        assert dumped["completion_rate"] == 100.0
        assert dumped["velocity"] == 4.0

    def test_project_stats_completion_rate(self):
        assert ProjectStats().completion_rate == 0.0
        assert abs(ProjectStats(total=3, completed=2).completion_rate - 66.67) < 0.01

    def test_ai_stats_defaults(self):
        stats = AIStats()
        assert stats.most_used_tool == AITool.UNKNOWN
        assert stats.ai_generation_rate == 0.0


if __name__ == "__main__":
    print("Testing entity models:")
    test_issue_defaults()
    test_ids_are_unique()
    test_project_and_label_defaults()
    test_default_labels_are_five_distinct_names()
    test_tracking_defaults()
    test_priority_ordering()
    test_status_display_names()
    test_ai_tool_parse_unknown()
    test_query_defaults_have_no_filters()
    test_query_active_filter_count()
    test_query_cleared_keeps_sort_order()
    print("\nAll entity model tests passed!")
