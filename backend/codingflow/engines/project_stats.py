"""Project statistics: issue counts by status and AI share."""

from __future__ import annotations

from collections.abc import Iterable

from codingflow.models.issue import Issue, IssueStatus
from codingflow.models.project import Project
from codingflow.models.stats import ProjectStats
from codingflow.store.entity_store import EntityStore


def compute_project_stats(issues: Iterable[Issue]) -> ProjectStats:
    # Unlike cycle stats, backlog here excludes todo
    issues = list(issues)
    return ProjectStats(
        total=len(issues),
        completed=sum(1 for i in issues if i.status == IssueStatus.DONE),
        in_progress=sum(1 for i in issues if i.status == IssueStatus.IN_PROGRESS),
        in_review=sum(1 for i in issues if i.status == IssueStatus.IN_REVIEW),
        backlog=sum(1 for i in issues if i.status == IssueStatus.BACKLOG),
        ai_generated=sum(1 for i in issues if i.is_ai_generated),
    )


class ProjectStatsEngine:
    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def stats(self, project: Project | str) -> ProjectStats:
        """Counts over every issue owned by the project (subtasks included)."""
        project_id = project.id if isinstance(project, Project) else project
        with self.store.reading() as session:
            self.store.require(session, Project, project_id)
            issues = self.store.query(session, Issue, Issue.project_id == project_id)
        return compute_project_stats(issues)
