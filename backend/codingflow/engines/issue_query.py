"""Issue query engine: conjunctive filters, text search, stable sort.

Structured filters (project, status, priority, AI flag) are pushed down to
SQL; the free-text search runs in memory on the already-reduced set, then
the result is sorted with Python's stable sort so ties keep insertion order.
"""

from __future__ import annotations

import logging
import unicodedata

from sqlmodel import select

from codingflow.models.issue import Issue, IssueStatus, IssueType
from codingflow.models.query import IssueQuery, SortOrder
from codingflow.store.entity_store import INSERTION_ORDER, EntityStore

logger = logging.getLogger(__name__)


def fold_text(text: str) -> str:
    """Case- and accent-insensitive form used for substring search."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def matches_search(issue: Issue, search_text: str) -> bool:
    needle = fold_text(search_text)
    return needle in fold_text(issue.title) or needle in fold_text(issue.description or "")


def sort_issues(issues: list[Issue], order: SortOrder) -> list[Issue]:
    """Stable sort by the given order.

    PRIORITY_HIGH sorts by the priority's raw value descending, which puts
    LOW (3) first and URGENT (0) last. Existing callers depend on it.
    """
    if order == SortOrder.UPDATED_DESC:
        return sorted(issues, key=lambda i: i.updated_at, reverse=True)
    if order == SortOrder.UPDATED_ASC:
        return sorted(issues, key=lambda i: i.updated_at)
    if order == SortOrder.PRIORITY_HIGH:
        return sorted(issues, key=lambda i: int(i.priority), reverse=True)
    if order == SortOrder.CREATED_DESC:
        return sorted(issues, key=lambda i: i.created_at, reverse=True)
    raise ValueError(f"Unknown sort order: {order}")


def group_by_status(issues: list[Issue]) -> dict[IssueStatus, list[Issue]]:
    """Bucket issues by status in canonical order.

    Subtasks are left out (they are shown under their parent) and empty
    buckets are omitted.
    """
    groups: dict[IssueStatus, list[Issue]] = {}
    for status in IssueStatus:
        bucket = [i for i in issues if i.status == status and i.type != IssueType.SUBTASK]
        if bucket:
            groups[status] = bucket
    return groups


class IssueQueryEngine:
    """Fetches issues matching an ``IssueQuery``.

    Usage:
        engine = IssueQueryEngine(store)
        done_ai = engine.fetch_issues(IssueQuery(status=IssueStatus.DONE,
                                                 only_ai_generated=True))
        board = engine.fetch_grouped(IssueQuery(project_id=project.id))
    """

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def build_statement(self, criteria: IssueQuery):
        stmt = select(Issue)
        if criteria.project_id is not None:
            stmt = stmt.where(Issue.project_id == criteria.project_id)
        if criteria.status is not None:
            stmt = stmt.where(Issue.status == IssueStatus(criteria.status))
        if criteria.priority is not None:
            stmt = stmt.where(Issue.priority == criteria.priority)
        if criteria.only_ai_generated:
            stmt = stmt.where(Issue.is_ai_generated == True)  # noqa: E712
        return stmt.order_by(INSERTION_ORDER)

    def fetch_issues(self, criteria: IssueQuery | None = None) -> list[Issue]:
        """Issues matching every active filter, in ``criteria.sort_order``.

        Raises:
            PersistenceError: if the underlying query fails. An empty list
            always means "no matches".
        """
        criteria = criteria or IssueQuery()
        with self.store.reading() as session:
            issues = list(session.exec(self.build_statement(criteria)).all())

        if criteria.has_search:
            issues = [i for i in issues if matches_search(i, criteria.search_text)]

        logger.debug(
            "fetch_issues: %d filters, search=%r -> %d issues",
            criteria.active_filter_count, criteria.search_text, len(issues),
        )
        return sort_issues(issues, criteria.sort_order)

    def fetch_grouped(self, criteria: IssueQuery | None = None) -> dict[IssueStatus, list[Issue]]:
        return group_by_status(self.fetch_issues(criteria))
