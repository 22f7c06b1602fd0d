"""AI tracking models: append-only logs of AI-assisted work.

AITrackingEvent: one AI tool interaction (generation, refactor, fix, review,
issue_creation, ...). ContextSnapshot: a saved "where was I" note for an
issue. Neither is updated after creation; deleting the referenced issue only
clears ``issue_id``.
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlmodel import JSON, Column, SQLModel
from sqlmodel import Field as SQLField

from codingflow.db.types import UTCDateTime, utcnow


class AITrackingEvent(SQLModel, table=True):
    """A single AI tool interaction."""

    __tablename__ = "ai_tracking_event"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    timestamp: datetime = SQLField(
        default_factory=utcnow, sa_column=Column(UTCDateTime, nullable=False, index=True)
    )
    event_type: str  # free-form tag: "generation" | "refactor" | "fix" | "review" | ...
    ai_tool: str = "unknown"
    prompt_summary: str = ""
    code_files_changed: list[str] = SQLField(default_factory=list, sa_column=Column(JSON))
    tokens_used: int = 0
    issue_id: str | None = SQLField(default=None, foreign_key="issue.id", index=True)


class ContextSnapshot(SQLModel, table=True):
    """Progress snapshot for resuming work on an issue."""

    __tablename__ = "context_snapshot"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    timestamp: datetime = SQLField(
        default_factory=utcnow, sa_column=Column(UTCDateTime, nullable=False, index=True)
    )
    completion_percentage: float = 0.0  # 0-100
    key_files: list[str] = SQLField(default_factory=list, sa_column=Column(JSON))
    pending_items: list[str] = SQLField(default_factory=list, sa_column=Column(JSON))
    notes: str = ""
    issue_id: str | None = SQLField(default=None, foreign_key="issue.id", index=True)
