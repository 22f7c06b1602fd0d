"""IssueService: issue lifecycle, hierarchy, labels, and comments.

Every mutation is one ``EntityStore.transaction()``. Issue creation computes
the issue number and inserts the row under the store's writer lock, so two
creations in the same project can never share a number.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, time

from sqlmodel import select

from codingflow.db.types import utcnow
from codingflow.models.issue import (
    Comment,
    Issue,
    IssueLabelLink,
    IssuePriority,
    IssueStatus,
    IssueType,
)
from codingflow.models.project import IssueLabel
from codingflow.services.validation import require_choice, require_non_negative, require_text
from codingflow.store.entity_store import EntityStore
from codingflow.store.relationships import CascadeSummary

logger = logging.getLogger(__name__)

# Never copied from the caller in update_issue
_IMMUTABLE_FIELDS = ("id", "created_at", "issue_number", "project_id", "parent_issue_id")
# Cumulative, maintained by AITrackingService.track_ai_event
AI_METADATA_FIELDS = ("is_ai_generated", "ai_tool_used", "ai_generation_count", "ai_context_tokens")


def _validate_issue_fields(issue: Issue) -> None:
    issue.title = require_text("title", issue.title)
    issue.status = require_choice("status", IssueStatus, issue.status)
    issue.priority = require_choice("priority", IssuePriority, issue.priority)
    issue.type = require_choice("type", IssueType, issue.type)
    require_non_negative("estimated_hours", issue.estimated_hours)
    require_non_negative("actual_hours", issue.actual_hours)
    require_non_negative("ai_context_tokens", issue.ai_context_tokens)
    require_non_negative("ai_generation_count", issue.ai_generation_count)


def local_midnight(now: datetime | None = None) -> datetime:
    """Start of today in local time, timezone-aware."""
    today = (now or utcnow()).astimezone().date()
    # Resolve the offset for midnight itself, which differs on DST changeover days
    return datetime.combine(today, time()).astimezone()


class IssueService:
    """Usage:
        issues = IssueService(store)
        bug = issues.create_issue("Fix login crash", type=IssueType.BUG,
                                  priority=IssuePriority.URGENT, project_id=p.id)
        issues.change_status(bug.id, IssueStatus.IN_PROGRESS)
        issues.add_comment(bug.id, "Repro on 17.2 only")
    """

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Create / read
    # ------------------------------------------------------------------

    def create_issue(
        self,
        title: str,
        description: str = "",
        type: IssueType = IssueType.TASK,
        priority: IssuePriority = IssuePriority.MEDIUM,
        status: IssueStatus = IssueStatus.BACKLOG,
        project_id: str | None = None,
        cycle_id: str | None = None,
        parent_issue_id: str | None = None,
        estimated_hours: float | None = None,
        label_ids: Iterable[str] = (),
        is_ai_generated: bool = False,
    ) -> Issue:
        """Validate, number, and insert a new issue.

        Raises:
            ValidationError: empty title or negative hours (checked first).
            NotFoundError: a referenced project, cycle, parent, or label
                does not exist.
        """
        issue = Issue(
            title=title,
            description=description,
            type=type,
            priority=priority,
            status=status,
            project_id=project_id,
            cycle_id=cycle_id,
            parent_issue_id=parent_issue_id,
            estimated_hours=estimated_hours,
            is_ai_generated=is_ai_generated,
        )
        _validate_issue_fields(issue)

        with self.store.transaction() as session:
            self.store.relationships.check_references(session, issue)
            issue.issue_number = self.store.relationships.sequencer.next_number(session, project_id)
            self.store.add_new(session, issue)
            session.flush()
            for label_id in label_ids:
                self.store.relationships.attach_label(session, issue.id, label_id)

        logger.debug("Created issue %s #%d in project %s", issue.id[:8], issue.issue_number, project_id)
        return issue

    def get_issue(self, issue_id: str) -> Issue:
        return self.store.get(Issue, issue_id)

    def next_issue_number(self, project_id: str | None) -> int:
        """Number the next issue created in ``project_id`` would receive."""
        with self.store.reading() as session:
            return self.store.relationships.sequencer.next_number(session, project_id)

    def fetch_subtasks(self, issue_id: str) -> list[Issue]:
        return self.store.fetch(Issue, Issue.parent_issue_id == issue_id)

    def fetch_today_issues(self, now: datetime | None = None) -> list[Issue]:
        """Issues created since local midnight, newest first."""
        start = local_midnight(now)
        return self.store.fetch(Issue, Issue.created_at >= start, order_by=[Issue.created_at.desc()])

    def issue_count(self, status: IssueStatus, project_id: str | None = None) -> int:
        """Issues with ``status`` whose project is exactly ``project_id``.

        ``project_id=None`` counts issues that have no project.
        """
        if project_id is None:
            project_clause = Issue.project_id.is_(None)
        else:
            project_clause = Issue.project_id == project_id
        return self.store.count(Issue, Issue.status == IssueStatus(status), project_clause)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_issue(self, issue: Issue) -> Issue:
        """Persist edits to an issue and refresh its ``updated_at``.

        A changed project re-numbers the issue in the target project; a
        changed parent is checked for cycles. AI metadata is left as stored;
        a copy of the issue read before an AI event cannot roll it back.
        """
        _validate_issue_fields(issue)
        rel = self.store.relationships
        with self.store.transaction() as session:
            stored = self.store.require(session, Issue, issue.id)
            rel.check_references(session, issue)
            if issue.parent_issue_id != stored.parent_issue_id:
                rel.set_parent(session, issue.id, issue.parent_issue_id)
            if issue.project_id != stored.project_id:
                rel.assign_project(session, issue.id, issue.project_id)
                issue.issue_number = stored.issue_number

            for name in Issue.model_fields:
                if name in _IMMUTABLE_FIELDS or name in AI_METADATA_FIELDS:
                    continue
                setattr(stored, name, getattr(issue, name))
            stored.updated_at = utcnow()
            session.add(stored)
        logger.debug("Updated issue %s", issue.id[:8])
        return stored

    def change_status(self, issue_id: str, status: IssueStatus) -> Issue:
        with self.store.transaction() as session:
            issue = self.store.require(session, Issue, issue_id)
            issue.status = require_choice("status", IssueStatus, status)
            issue.updated_at = utcnow()
            session.add(issue)
        return issue

    def move_issue_to_project(self, issue_id: str, project_id: str | None) -> Issue:
        with self.store.transaction() as session:
            return self.store.relationships.assign_project(session, issue_id, project_id)

    def set_parent(self, issue_id: str, parent_issue_id: str | None) -> Issue:
        with self.store.transaction() as session:
            return self.store.relationships.set_parent(session, issue_id, parent_issue_id)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_issue(self, issue_id: str) -> CascadeSummary:
        """Delete an issue with its comments and subtasks."""
        return self.store.delete(self.store.get(Issue, issue_id))

    def delete_issues(self, issue_ids: Iterable[str]) -> CascadeSummary:
        """Delete several issues atomically: all of them or none."""
        ids = list(dict.fromkeys(issue_ids))
        with self.store.transaction() as session:
            summary = self.store.relationships.delete_issues(session, ids)
        logger.info("Deleted %d issues (%s)", len(ids), summary)
        return summary

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    def add_label(self, issue_id: str, label_id: str) -> bool:
        with self.store.transaction() as session:
            return self.store.relationships.attach_label(session, issue_id, label_id)

    def remove_label(self, issue_id: str, label_id: str) -> bool:
        with self.store.transaction() as session:
            return self.store.relationships.detach_label(session, issue_id, label_id)

    def fetch_issue_labels(self, issue_id: str) -> list[IssueLabel]:
        with self.store.reading() as session:
            self.store.require(session, Issue, issue_id)
            stmt = (
                select(IssueLabel)
                .join(IssueLabelLink, IssueLabelLink.label_id == IssueLabel.id)
                .where(IssueLabelLink.issue_id == issue_id)
                .order_by(IssueLabel.name)
            )
            return list(session.exec(stmt).all())

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def add_comment(self, issue_id: str, content: str, is_ai_generated: bool = False) -> Comment:
        comment = Comment(
            content=require_text("content", content),
            issue_id=issue_id,
            is_ai_generated=is_ai_generated,
        )
        with self.store.transaction() as session:
            self.store.require(session, Issue, issue_id)
            self.store.add_new(session, comment)
        return comment

    def fetch_comments(self, issue_id: str) -> list[Comment]:
        """Comments on an issue, oldest first."""
        return self.store.fetch(Comment, Comment.issue_id == issue_id, order_by=[Comment.created_at])

    def delete_comment(self, comment_id: str) -> CascadeSummary:
        return self.store.delete(self.store.get(Comment, comment_id))


