"""Tests for CycleService: CRUD, archiving, active/upcoming queries, quick create."""

import os
import sys
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest

from codingflow.errors import NotFoundError, ValidationError
from codingflow.models.issue import Issue
from codingflow.services.cycles import week_start
from codingflow.services.issues import local_midnight

NOW = datetime(2026, 3, 11, 12, 0, tzinfo=timezone.utc)  # a Wednesday


def _cycle(ws, name, start_offset, length=7, project_id=None):
    start = NOW + timedelta(days=start_offset)
    return ws.cycles.create_cycle(name, start, start + timedelta(days=length), project_id=project_id)


class TestCycleCrud:
    def test_create_defaults(self, ws):
        cycle = _cycle(ws, "Week 11", -2)
        loaded = ws.cycles.get_cycle(cycle.id)
        assert loaded.total_capacity == 40.0
        assert loaded.is_archived is False
        assert loaded.start_date == cycle.start_date

    def test_create_validation(self, ws):
        with pytest.raises(ValidationError):
            ws.cycles.create_cycle("", NOW, NOW)
        with pytest.raises(ValidationError):
            ws.cycles.create_cycle("x", NOW, NOW, capacity=-5)
        with pytest.raises(NotFoundError):
            ws.cycles.create_cycle("x", NOW, NOW, project_id="nope")

    def test_update_cycle(self, ws, project):
        cycle = _cycle(ws, "Sprint", 0)
        cycle.planned_points = 13
        cycle.project_id = project.id
        ws.cycles.update_cycle(cycle)
        loaded = ws.cycles.get_cycle(cycle.id)
        assert loaded.planned_points == 13
        assert loaded.project_id == project.id

    def test_update_to_missing_project_fails(self, ws):
        cycle = _cycle(ws, "Sprint", 0)
        cycle.project_id = "nope"
        with pytest.raises(NotFoundError):
            ws.cycles.update_cycle(cycle)
        assert ws.cycles.get_cycle(cycle.id).project_id is None


class TestArchive:
    def test_archive_clears_issue_association(self, ws, project):
        cycle = _cycle(ws, "Sprint", 0)
        a = ws.issues.create_issue("a", project_id=project.id, cycle_id=cycle.id)
        b = ws.issues.create_issue("b", project_id=project.id)
        ws.cycles.assign_issue_to_cycle(b.id, cycle.id)
        assert len(ws.cycles.fetch_cycle_issues(cycle.id)) == 2

        archived = ws.cycles.archive_cycle(cycle.id)

        assert archived.is_archived
        assert ws.cycles.fetch_cycle_issues(cycle.id) == []
        assert ws.issues.get_issue(a.id).cycle_id is None
        assert ws.store.count(Issue) == 2

    def test_archived_cycles_hidden(self, ws):
        keep = _cycle(ws, "keep", 0)
        gone = _cycle(ws, "gone", 1)
        ws.cycles.archive_cycle(gone.id)
        assert [c.id for c in ws.cycles.fetch_cycles()] == [keep.id]

    def test_archive_missing(self, ws):
        with pytest.raises(NotFoundError):
            ws.cycles.archive_cycle("missing")


class TestCycleQueries:
    def test_fetch_cycles_latest_start_first(self, ws, project):
        _cycle(ws, "old", -20, project_id=project.id)
        _cycle(ws, "new", 5, project_id=project.id)
        _cycle(ws, "mid", -5, project_id=project.id)
        _cycle(ws, "elsewhere", 0)
        names = [c.name for c in ws.cycles.fetch_cycles(project.id)]
        assert names == ["new", "mid", "old"]
        assert len(ws.cycles.fetch_cycles()) == 4

    def test_active_and_upcoming(self, ws):
        _cycle(ws, "past", -30)
        _cycle(ws, "current", -3)
        _cycle(ws, "next", 4)
        _cycle(ws, "later", 11)
        assert [c.name for c in ws.cycles.fetch_active_cycles(now=NOW)] == ["current"]
        assert [c.name for c in ws.cycles.fetch_upcoming_cycles(now=NOW)] == ["next", "later"]


class TestQuickCreate:
    def test_week_start_is_local_monday_midnight(self):
        start = week_start(NOW)
        assert start.weekday() == 0
        assert (start.hour, start.minute, start.second) == (0, 0, 0)
        assert start <= NOW < start + timedelta(days=7)

    def test_current_week_cycle(self, ws, project):
        cycle = ws.cycles.create_current_week_cycle(project_id=project.id, now=NOW)
        start = week_start(NOW)
        assert cycle.name == f"Week {start.isocalendar()[1]}"
        assert cycle.start_date == start
        assert cycle.end_date - cycle.start_date == timedelta(days=7) - timedelta(microseconds=1)
        assert cycle.total_capacity == 40.0
        assert cycle.is_active_at(NOW)
        assert ws.cycles.get_cycle(cycle.id).end_date == cycle.end_date

    def test_two_week_sprint(self, ws):
        sprint = ws.cycles.create_two_week_sprint(now=NOW)
        assert sprint.name.startswith("Sprint ")
        assert sprint.total_capacity == 80.0
        assert sprint.end_date - sprint.start_date == timedelta(days=14) - timedelta(microseconds=1)
        assert sprint.project_id is None


class TestCycleDates:
    def test_naive_dates_are_stored_and_returned_as_utc(self, ws):
        cycle = ws.cycles.create_cycle("Naive", datetime(2026, 1, 1), datetime(2026, 1, 8))
        assert cycle.start_date == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert cycle.end_date.tzinfo is not None
        assert cycle.is_active is False
        assert cycle.days_remaining < 0
        assert ws.cycles.get_cycle(cycle.id).start_date == cycle.start_date

    def test_update_with_naive_dates(self, ws):
        cycle = _cycle(ws, "Sprint", 0)
        cycle.end_date = datetime(2026, 3, 20, 12, 0)
        saved = ws.cycles.update_cycle(cycle)
        assert saved.end_date == datetime(2026, 3, 20, 12, 0, tzinfo=timezone.utc)
        assert saved.is_active_at(NOW)

    def test_offset_dates_are_converted_to_utc(self, ws):
        plus_two = timezone(timedelta(hours=2))
        cycle = ws.cycles.create_cycle("Offset", datetime(2026, 3, 9, 2, 0, tzinfo=plus_two), NOW)
        assert cycle.start_date == datetime(2026, 3, 9, 0, 0, tzinfo=timezone.utc)
        assert cycle.start_date.utcoffset() == timedelta(0)


class TestDaylightSaving:
    # Sunday 2026-03-08 14:00 EDT, the day New York moves from -05:00 to -04:00
    CHANGEOVER = datetime(2026, 3, 8, 18, 0, tzinfo=timezone.utc)

    def test_local_midnight_uses_midnight_offset(self, new_york_tz):
        assert local_midnight(self.CHANGEOVER) == datetime(2026, 3, 8, 5, 0, tzinfo=timezone.utc)

    def test_week_start_across_changeover(self, new_york_tz):
        # Monday 2026-03-02 00:00 EST
        assert week_start(self.CHANGEOVER) == datetime(2026, 3, 2, 5, 0, tzinfo=timezone.utc)

    def test_week_cycle_ends_at_local_midnight(self, ws, new_york_tz):
        cycle = ws.cycles.create_current_week_cycle(now=self.CHANGEOVER)
        # Sunday 2026-03-08 24:00 EDT, minus one microsecond
        assert cycle.end_date == datetime(2026, 3, 9, 4, 0, tzinfo=timezone.utc) - timedelta(microseconds=1)
        assert cycle.is_active_at(self.CHANGEOVER)
