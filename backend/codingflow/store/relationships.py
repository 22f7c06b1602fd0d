"""RelationshipManager: ownership, cascade, and nullify rules.

Delete rules:
    Project  -> Issues (cascade), IssueLabels (cascade), Cycles (nullify)
    Issue    -> Comments (cascade), subtasks (cascade, recursive),
                label links (removed), AI events / snapshots (nullify)
    Cycle    -> Issues (nullify)
    IssueLabel -> label links (removed)

All methods operate on a caller-supplied session, so the whole cascade set
commits or rolls back together with the caller's transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlmodel import Session, SQLModel, select

from codingflow.db.types import utcnow
from codingflow.errors import NotFoundError, PersistenceError, ValidationError
from codingflow.models.cycle import Cycle
from codingflow.models.issue import Comment, Issue, IssueLabelLink
from codingflow.models.project import IssueLabel, Project
from codingflow.models.tracking import AITrackingEvent, ContextSnapshot
from codingflow.store.sequencer import IssueNumberSequencer

logger = logging.getLogger(__name__)


@dataclass
class CascadeSummary:
    """What a delete removed or detached."""

    deleted: dict[str, int] = field(default_factory=dict)
    nullified: dict[str, int] = field(default_factory=dict)

    def add_deleted(self, kind: str, n: int = 1) -> None:
        if n:
            self.deleted[kind] = self.deleted.get(kind, 0) + n

    def add_nullified(self, kind: str, n: int = 1) -> None:
        if n:
            self.nullified[kind] = self.nullified.get(kind, 0) + n

    def __str__(self) -> str:
        parts = [f"{k}={v}" for k, v in self.deleted.items()]
        parts += [f"{k}->null={v}" for k, v in self.nullified.items()]
        return ", ".join(parts) or "nothing"


def require_entity(session: Session, kind: type, entity_id: str | None):
    """Load an entity by id or raise NotFoundError."""
    entity = session.get(kind, entity_id) if entity_id is not None else None
    if entity is None:
        raise NotFoundError(kind.__name__, str(entity_id))
    return entity


class RelationshipManager:
    """Applies cascade / nullify rules and validates re-parenting."""

    def __init__(self, sequencer: IssueNumberSequencer | None = None) -> None:
        self.sequencer = sequencer or IssueNumberSequencer()

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(self, session: Session, kind: type[SQLModel], entity_id: str) -> CascadeSummary:
        """Delete one entity and everything its rules pull along."""
        summary = CascadeSummary()
        if kind is Project:
            self._delete_project(session, entity_id, summary)
        elif kind is Issue:
            self._delete_issues(session, [entity_id], summary)
        elif kind is Cycle:
            self._delete_cycle(session, entity_id, summary)
        elif kind is IssueLabel:
            self._delete_label(session, entity_id, summary)
        elif kind is Comment:
            session.delete(require_entity(session, Comment, entity_id))
            summary.add_deleted("comment")
        elif kind in (AITrackingEvent, ContextSnapshot):
            raise PersistenceError(f"{kind.__name__} records are append-only")
        else:
            raise PersistenceError(f"Unsupported entity kind for delete: {kind.__name__}")
        return summary

    def delete_issues(self, session: Session, issue_ids: list[str]) -> CascadeSummary:
        summary = CascadeSummary()
        self._delete_issues(session, issue_ids, summary)
        return summary

    def _delete_project(self, session: Session, project_id: str, summary: CascadeSummary) -> None:
        project = require_entity(session, Project, project_id)

        issue_ids = list(session.exec(select(Issue.id).where(Issue.project_id == project_id)).all())
        self._delete_issues(session, issue_ids, summary)

        for label in session.exec(select(IssueLabel).where(IssueLabel.project_id == project_id)).all():
            self._delete_label(session, label.id, summary)

        cycles = session.exec(select(Cycle).where(Cycle.project_id == project_id)).all()
        for cycle in cycles:
            cycle.project_id = None
            session.add(cycle)
        summary.add_nullified("cycle.project_id", len(cycles))

        session.delete(project)
        summary.add_deleted("project")

    def _delete_issues(self, session: Session, issue_ids: list[str], summary: CascadeSummary) -> None:
        """Delete the given issues, their whole subtask trees, and comments."""
        for issue_id in issue_ids:
            require_entity(session, Issue, issue_id)
        doomed = self.collect_subtree(session, issue_ids)
        if not doomed:
            return

        for comment in session.exec(select(Comment).where(Comment.issue_id.in_(doomed))).all():
            session.delete(comment)
            summary.add_deleted("comment")

        for link in session.exec(select(IssueLabelLink).where(IssueLabelLink.issue_id.in_(doomed))).all():
            session.delete(link)
            summary.add_deleted("issue_label_link")

        for log_kind in (AITrackingEvent, ContextSnapshot):
            rows = session.exec(select(log_kind).where(log_kind.issue_id.in_(doomed))).all()
            for row in rows:
                row.issue_id = None
                session.add(row)
            summary.add_nullified(f"{log_kind.__tablename__}.issue_id", len(rows))

        # Children first
        for issue_id in reversed(doomed):
            session.delete(session.get(Issue, issue_id))
            summary.add_deleted("issue")
        session.flush()

    def _delete_cycle(self, session: Session, cycle_id: str, summary: CascadeSummary) -> None:
        cycle = require_entity(session, Cycle, cycle_id)
        summary.add_nullified("issue.cycle_id", self.clear_cycle_issues(session, cycle_id))
        session.delete(cycle)
        summary.add_deleted("cycle")

    def _delete_label(self, session: Session, label_id: str, summary: CascadeSummary) -> None:
        label = require_entity(session, IssueLabel, label_id)
        for link in session.exec(select(IssueLabelLink).where(IssueLabelLink.label_id == label_id)).all():
            session.delete(link)
            summary.add_deleted("issue_label_link")
        session.delete(label)
        summary.add_deleted("issue_label")

    @staticmethod
    def collect_subtree(session: Session, root_ids: list[str]) -> list[str]:
        """Breadth-first ids of the roots and all their descendants."""
        ordered: list[str] = []
        seen: set[str] = set()
        frontier = list(root_ids)
        while frontier:
            fresh = [i for i in dict.fromkeys(frontier) if i not in seen]
            ordered.extend(fresh)
            seen.update(fresh)
            if not fresh:
                break
            frontier = list(session.exec(select(Issue.id).where(Issue.parent_issue_id.in_(fresh))).all())
        return ordered

    # ------------------------------------------------------------------
    # Re-parenting
    # ------------------------------------------------------------------

    def clear_cycle_issues(self, session: Session, cycle_id: str) -> int:
        """Detach every issue from a cycle; returns how many were detached."""
        issues = session.exec(select(Issue).where(Issue.cycle_id == cycle_id)).all()
        for issue in issues:
            issue.cycle_id = None
            session.add(issue)
        return len(issues)

    def assign_cycle(self, session: Session, issue_id: str, cycle_id: str | None) -> Issue:
        issue = require_entity(session, Issue, issue_id)
        if cycle_id is not None:
            require_entity(session, Cycle, cycle_id)
        issue.cycle_id = cycle_id
        issue.updated_at = utcnow()
        session.add(issue)
        return issue

    def assign_project(self, session: Session, issue_id: str, project_id: str | None) -> Issue:
        """Move an issue to another project; it takes that project's next number."""
        issue = require_entity(session, Issue, issue_id)
        if project_id is not None:
            require_entity(session, Project, project_id)
        if issue.project_id == project_id:
            return issue
        # Number first: the query autoflushes, and the old number may be taken in the target
        number = self.sequencer.next_number(session, project_id, exclude_id=issue.id)
        issue.project_id = project_id
        issue.issue_number = number
        issue.updated_at = utcnow()
        session.add(issue)
        logger.debug("Issue %s moved to project %s as #%d", issue.id[:8], project_id, issue.issue_number)
        return issue

    def set_parent(self, session: Session, issue_id: str, parent_id: str | None) -> Issue:
        issue = require_entity(session, Issue, issue_id)
        if parent_id is not None:
            require_entity(session, Issue, parent_id)
            if parent_id in self.collect_subtree(session, [issue_id]):
                raise ValidationError("parent_issue_id", "an issue cannot be nested under itself")
        issue.parent_issue_id = parent_id
        issue.updated_at = utcnow()
        session.add(issue)
        return issue

    def attach_label(self, session: Session, issue_id: str, label_id: str) -> bool:
        """Link a label to an issue. Returns False if already linked."""
        issue = require_entity(session, Issue, issue_id)
        require_entity(session, IssueLabel, label_id)
        if session.get(IssueLabelLink, (issue_id, label_id)) is not None:
            return False
        session.add(IssueLabelLink(issue_id=issue_id, label_id=label_id))
        issue.updated_at = utcnow()
        session.add(issue)
        return True

    def detach_label(self, session: Session, issue_id: str, label_id: str) -> bool:
        issue = require_entity(session, Issue, issue_id)
        link = session.get(IssueLabelLink, (issue_id, label_id))
        if link is None:
            return False
        session.delete(link)
        issue.updated_at = utcnow()
        session.add(issue)
        return True

    def check_references(self, session: Session, issue: Issue) -> None:
        """Every non-null reference on an issue must point at a live row."""
        if issue.project_id is not None:
            require_entity(session, Project, issue.project_id)
        if issue.cycle_id is not None:
            require_entity(session, Cycle, issue.cycle_id)
        if issue.parent_issue_id is not None:
            require_entity(session, Issue, issue.parent_issue_id)
