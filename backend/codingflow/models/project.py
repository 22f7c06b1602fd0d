"""Project and IssueLabel models.

A Project owns its issues and labels (deleted with it) and is referenced by
cycles (reference cleared when the project goes away). Ownership is stored as
``project_id`` columns on the owned rows; see store/relationships.py.
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlmodel import Column, SQLModel
from sqlmodel import Field as SQLField

from codingflow.db.types import UTCDateTime, utcnow


class Project(SQLModel, table=True):
    """A project grouping issues, labels, and cycles."""

    __tablename__ = "project"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    description: str = ""
    icon: str = "folder.fill"
    color: str = "007AFF"  # hex, no leading '#'
    created_at: datetime = SQLField(
        default_factory=utcnow, sa_column=Column(UTCDateTime, nullable=False)
    )
    updated_at: datetime = SQLField(
        default_factory=utcnow, sa_column=Column(UTCDateTime, nullable=False)
    )


class IssueLabel(SQLModel, table=True):
    """A label that can be attached to any number of issues."""

    __tablename__ = "issue_label"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    color: str = "FF9500"
    icon: str = "tag.fill"
    created_at: datetime = SQLField(
        default_factory=utcnow, sa_column=Column(UTCDateTime, nullable=False)
    )
    project_id: str | None = SQLField(default=None, foreign_key="project.id", index=True)


# (name, color, icon) seeded into every new project
DEFAULT_LABELS: list[tuple[str, str, str]] = [
    ("Feature", "34C759", "star.fill"),
    ("Bug", "FF3B30", "ladybug.fill"),
    ("Tech Debt", "FF9500", "wrench.fill"),
    ("Research", "5856D6", "magnifyingglass"),
    ("AI Generated", "00C7BE", "sparkles"),
]
