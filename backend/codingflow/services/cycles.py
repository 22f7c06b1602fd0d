"""CycleService: planning cycles and issue assignment."""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta

from codingflow.config import settings
from codingflow.db.types import as_utc, utcnow
from codingflow.models.cycle import Cycle
from codingflow.models.issue import Issue
from codingflow.models.project import Project
from codingflow.services.issues import local_midnight
from codingflow.services.validation import require_non_negative, require_text
from codingflow.store.entity_store import EntityStore
from codingflow.store.relationships import CascadeSummary

logger = logging.getLogger(__name__)


def _validate_cycle_fields(cycle: Cycle) -> None:
    cycle.name = require_text("name", cycle.name)
    cycle.start_date = as_utc(cycle.start_date)
    cycle.end_date = as_utc(cycle.end_date)
    require_non_negative("total_capacity", cycle.total_capacity)
    require_non_negative("planned_points", cycle.planned_points)


def week_start(now: datetime | None = None) -> datetime:
    """Local midnight of the Monday of the current ISO week."""
    today = local_midnight(now)
    monday = today.date() - timedelta(days=today.weekday())
    return datetime.combine(monday, time()).astimezone()


def _end_of_day(start: datetime, days: int) -> datetime:
    """Last microsecond of the ``days``-th local day starting at ``start``."""
    next_midnight = datetime.combine(start.date() + timedelta(days=days), time()).astimezone()
    return next_midnight - timedelta(microseconds=1)


class CycleService:
    """Usage:
        cycles = CycleService(store)
        sprint = cycles.create_two_week_sprint(project_id=p.id)
        cycles.assign_issue_to_cycle(issue.id, sprint.id)
        cycles.archive_cycle(sprint.id)   # issues stay, association cleared
    """

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_cycle(
        self,
        name: str,
        start_date: datetime,
        end_date: datetime,
        project_id: str | None = None,
        description: str = "",
        capacity: float | None = None,
    ) -> Cycle:
        cycle = Cycle(
            name=name,
            description=description,
            start_date=start_date,
            end_date=end_date,
            project_id=project_id,
            total_capacity=settings.default_cycle_capacity if capacity is None else capacity,
        )
        _validate_cycle_fields(cycle)
        with self.store.transaction() as session:
            if project_id is not None:
                self.store.require(session, Project, project_id)
            self.store.add_new(session, cycle)
        logger.debug("Created cycle %s (%s)", cycle.id[:8], cycle.name)
        return cycle

    def get_cycle(self, cycle_id: str) -> Cycle:
        return self.store.get(Cycle, cycle_id)

    def update_cycle(self, cycle: Cycle) -> Cycle:
        _validate_cycle_fields(cycle)
        with self.store.transaction() as session:
            self.store.require(session, Cycle, cycle.id)
            if cycle.project_id is not None:
                self.store.require(session, Project, cycle.project_id)
            merged = session.merge(cycle)
        return merged

    def delete_cycle(self, cycle_id: str) -> CascadeSummary:
        """Delete a cycle; its issues survive with the reference cleared."""
        return self.store.delete(self.store.get(Cycle, cycle_id))

    def archive_cycle(self, cycle_id: str) -> Cycle:
        """Mark archived and release every issue from it."""
        with self.store.transaction() as session:
            cycle = self.store.require(session, Cycle, cycle_id)
            cycle.is_archived = True
            session.add(cycle)
            released = self.store.relationships.clear_cycle_issues(session, cycle_id)
        logger.info("Archived cycle %s, released %d issues", cycle_id[:8], released)
        return cycle

    # ------------------------------------------------------------------
    # Issue assignment
    # ------------------------------------------------------------------

    def assign_issue_to_cycle(self, issue_id: str, cycle_id: str) -> Issue:
        with self.store.transaction() as session:
            return self.store.relationships.assign_cycle(session, issue_id, cycle_id)

    def remove_issue_from_cycle(self, issue_id: str) -> Issue:
        with self.store.transaction() as session:
            return self.store.relationships.assign_cycle(session, issue_id, None)

    def fetch_cycle_issues(self, cycle_id: str) -> list[Issue]:
        with self.store.reading() as session:
            self.store.require(session, Cycle, cycle_id)
            return self.store.query(session, Issue, Issue.cycle_id == cycle_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def fetch_cycles(self, project_id: str | None = None) -> list[Cycle]:
        """Non-archived cycles, latest start first."""
        where = [Cycle.is_archived == False]  # noqa: E712
        if project_id is not None:
            where.append(Cycle.project_id == project_id)
        return self.store.fetch(Cycle, *where, order_by=[Cycle.start_date.desc()])

    def fetch_active_cycles(self, now: datetime | None = None) -> list[Cycle]:
        now = now or utcnow()
        return self.store.fetch(
            Cycle,
            Cycle.is_archived == False,  # noqa: E712
            Cycle.start_date <= now,
            Cycle.end_date >= now,
            order_by=[Cycle.start_date],
        )

    def fetch_upcoming_cycles(self, now: datetime | None = None) -> list[Cycle]:
        now = now or utcnow()
        return self.store.fetch(
            Cycle,
            Cycle.is_archived == False,  # noqa: E712
            Cycle.start_date > now,
            order_by=[Cycle.start_date],
        )

    # ------------------------------------------------------------------
    # Quick create
    # ------------------------------------------------------------------

    def create_current_week_cycle(self, project_id: str | None = None, now: datetime | None = None) -> Cycle:
        """'Week N': Monday 00:00 through the end of Sunday."""
        start = week_start(now)
        return self.create_cycle(
            name=f"Week {start.isocalendar()[1]}",
            start_date=start,
            end_date=_end_of_day(start, 7),
            project_id=project_id,
            capacity=settings.default_cycle_capacity,
        )

    def create_two_week_sprint(self, project_id: str | None = None, now: datetime | None = None) -> Cycle:
        """'Sprint N': Monday 00:00 of this week through the end of day 13."""
        start = week_start(now)
        return self.create_cycle(
            name=f"Sprint {start.isocalendar()[1]}",
            start_date=start,
            end_date=_end_of_day(start, 14),
            project_id=project_id,
            capacity=settings.sprint_capacity,
        )
