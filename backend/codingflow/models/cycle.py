"""Cycle model: a bounded planning period (week, sprint) with an hour budget."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlmodel import Column, SQLModel
from sqlmodel import Field as SQLField

from codingflow.db.types import UTCDateTime, utcnow


class Cycle(SQLModel, table=True):
    """A development cycle. Issues join it through ``Issue.cycle_id``.

    start_date <= end_date is expected but not enforced.
    """

    __tablename__ = "cycle"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    description: str = ""
    start_date: datetime = SQLField(sa_column=Column(UTCDateTime, nullable=False))
    end_date: datetime = SQLField(sa_column=Column(UTCDateTime, nullable=False))
    created_at: datetime = SQLField(
        default_factory=utcnow, sa_column=Column(UTCDateTime, nullable=False)
    )
    is_archived: bool = SQLField(default=False, index=True)
    total_capacity: float = 40.0  # hours
    planned_points: float = 0.0
    project_id: str | None = SQLField(default=None, foreign_key="project.id", index=True)

    def is_active_at(self, now: datetime) -> bool:
        return self.start_date <= now <= self.end_date

    def days_remaining_at(self, now: datetime) -> int:
        # Whole days, truncated toward zero; negative once overdue
        return int((self.end_date - now).total_seconds() / 86400)

    @property
    def is_active(self) -> bool:
        return self.is_active_at(utcnow())

    @property
    def days_remaining(self) -> int:
        return self.days_remaining_at(utcnow())
