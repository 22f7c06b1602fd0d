"""Per-project issue numbering.

Numbers are recomputed from stored state on every call (max + 1), not read
from a counter. Two callers computing concurrently would race to the same
number, so ``next_number`` must run inside an ``EntityStore.transaction()``,
which holds the writer lock (and SQLite's, via ``BEGIN IMMEDIATE``) until the
new issue is committed. The unique index on ``(project_id, issue_number)``
turns any collision that slips past into a PersistenceError.
"""

from __future__ import annotations

from sqlalchemy import func
from sqlmodel import Session, select

from codingflow.models.issue import Issue


class IssueNumberSequencer:
    """Assigns monotonically increasing issue numbers within a project."""

    def next_number(self, session: Session, project_id: str | None, exclude_id: str | None = None) -> int:
        """Return max(issue_number) + 1 for the project, or 1.

        Issues without a project are outside the uniqueness guarantee and
        always get 1. Pending (unflushed) inserts in ``session`` count.
        """
        if project_id is None:
            return 1
        stmt = select(func.max(Issue.issue_number)).where(Issue.project_id == project_id)
        if exclude_id is not None:
            stmt = stmt.where(Issue.id != exclude_id)
        current = session.exec(stmt).one()
        return (current or 0) + 1
