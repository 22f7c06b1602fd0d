"""Issue query criteria."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from codingflow.models.issue import IssuePriority, IssueStatus


class SortOrder(str, Enum):
    UPDATED_DESC = "updated_desc"
    UPDATED_ASC = "updated_asc"
    PRIORITY_HIGH = "priority_high"
    CREATED_DESC = "created_desc"


class IssueQuery(BaseModel):
    """Filter + sort configuration for ``IssueQueryEngine.fetch_issues``.

    All active filters are combined with AND. ``search_text`` is applied
    last, after the structured filters have narrowed the set.
    """

    project_id: str | None = None
    status: IssueStatus | None = None
    priority: IssuePriority | None = None
    only_ai_generated: bool = False
    search_text: str = ""
    sort_order: SortOrder = SortOrder.UPDATED_DESC

    @property
    def active_filter_count(self) -> int:
        """Number of active structured filters (search text excluded)."""
        active = [self.project_id, self.status, self.priority]
        return sum(1 for value in active if value is not None) + int(self.only_ai_generated)

    @property
    def has_search(self) -> bool:
        return bool(self.search_text)

    def cleared(self) -> IssueQuery:
        """Same sort order, every filter reset."""
        return IssueQuery(sort_order=self.sort_order)
