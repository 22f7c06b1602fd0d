"""Issue, Comment, and issue/label link models.

Includes the status, priority, type, and AI tool enums shared by the query
and statistics layers.

Hierarchy: ``parent_issue_id`` points at the parent row; subtasks are the
rows pointing back at it. Subtasks and comments are deleted with their issue,
labels are only referenced through ``issue_label_link``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum
from uuid import uuid4

from sqlalchemy import Index
from sqlmodel import Column, SQLModel
from sqlmodel import Field as SQLField

from codingflow.db.types import UTCDateTime, utcnow


class IssueStatus(str, Enum):
    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    DONE = "done"

    @property
    def display_name(self) -> str:
        return _STATUS_NAMES[self]


_STATUS_NAMES = {
    IssueStatus.BACKLOG: "Backlog",
    IssueStatus.TODO: "To Do",
    IssueStatus.IN_PROGRESS: "In Progress",
    IssueStatus.IN_REVIEW: "In Review",
    IssueStatus.DONE: "Done",
}


class IssuePriority(IntEnum):
    """Lower value = more urgent."""

    URGENT = 0
    HIGH = 1
    MEDIUM = 2
    LOW = 3


class IssueType(str, Enum):
    EPIC = "epic"
    STORY = "story"
    TASK = "task"
    BUG = "bug"
    SUBTASK = "subtask"


class AITool(str, Enum):
    """Known AI tool identifiers. Unrecognised tools are stored verbatim."""

    CLAUDE_CODE = "claude_code"
    CURSOR = "cursor"
    ANTIGRAVITY = "antigravity"
    CODEX_CLI = "codex_cli"
    GEMINI_CLI = "gemini_cli"
    CHATGPT = "chatgpt"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> AITool:
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class Issue(SQLModel, table=True):
    """A unit of work tracked within a project."""

    __tablename__ = "issue"
    __table_args__ = (
        Index("ux_issue_project_number", "project_id", "issue_number", unique=True),
    )

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    title: str
    description: str = ""
    status: IssueStatus = SQLField(default=IssueStatus.BACKLOG, index=True)
    priority: IssuePriority = SQLField(default=IssuePriority.MEDIUM, index=True)
    type: IssueType = IssueType.TASK
    created_at: datetime = SQLField(
        default_factory=utcnow, sa_column=Column(UTCDateTime, nullable=False, index=True)
    )
    updated_at: datetime = SQLField(
        default_factory=utcnow, sa_column=Column(UTCDateTime, nullable=False, index=True)
    )

    # Time tracking (hours)
    estimated_hours: float | None = None
    actual_hours: float | None = None

    # AI metadata, cumulative across tracked events
    is_ai_generated: bool = SQLField(default=False, index=True)
    ai_tool_used: str | None = None
    ai_generation_count: int = 0
    ai_context_tokens: int | None = None

    # Unique within project_id; assigned at creation
    issue_number: int = SQLField(default=0, index=True)

    project_id: str | None = SQLField(default=None, foreign_key="project.id", index=True)
    cycle_id: str | None = SQLField(default=None, foreign_key="cycle.id", index=True)
    parent_issue_id: str | None = SQLField(default=None, foreign_key="issue.id", index=True)


class Comment(SQLModel, table=True):
    """A comment on exactly one issue."""

    __tablename__ = "comment"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    content: str
    created_at: datetime = SQLField(
        default_factory=utcnow, sa_column=Column(UTCDateTime, nullable=False)
    )
    is_ai_generated: bool = False
    issue_id: str = SQLField(foreign_key="issue.id", index=True)


class IssueLabelLink(SQLModel, table=True):
    """Issue/label association. Neither side owns the other."""

    __tablename__ = "issue_label_link"

    issue_id: str = SQLField(foreign_key="issue.id", primary_key=True)
    label_id: str = SQLField(foreign_key="issue_label.id", primary_key=True)
