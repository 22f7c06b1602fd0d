"""ProjectService: project and label lifecycle."""

from __future__ import annotations

import logging

from codingflow.config import settings
from codingflow.db.types import utcnow
from codingflow.engines.issue_query import fold_text
from codingflow.models.project import DEFAULT_LABELS, IssueLabel, Project
from codingflow.services.validation import normalize_color, require_text
from codingflow.store.entity_store import EntityStore
from codingflow.store.relationships import CascadeSummary

logger = logging.getLogger(__name__)


class ProjectService:
    """Creates, updates, deletes, and lists projects and their labels.

    Usage:
        projects = ProjectService(store)
        p = projects.create_project("CodingFlow", description="Local tracker")
        projects.fetch_labels(p.id)     # the five default labels
        projects.delete_project(p.id)   # issues + labels go, cycles stay
    """

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(
        self,
        name: str,
        description: str = "",
        icon: str | None = None,
        color: str | None = None,
        with_default_labels: bool | None = None,
    ) -> Project:
        """Create a project, seeding the default labels unless disabled."""
        project = Project(
            name=require_text("name", name),
            description=description,
            icon=icon or settings.default_project_icon,
            color=normalize_color("color", color or settings.default_project_color),
        )
        seed = settings.create_default_labels if with_default_labels is None else with_default_labels

        with self.store.transaction() as session:
            self.store.add_new(session, project)
            if seed:
                for label_name, label_color, label_icon in DEFAULT_LABELS:
                    session.add(IssueLabel(
                        name=label_name, color=label_color, icon=label_icon, project_id=project.id,
                    ))

        logger.debug("Created project %s (%s)", project.id[:8], project.name)
        return project

    def get_project(self, project_id: str) -> Project:
        return self.store.get(Project, project_id)

    def update_project(self, project: Project) -> Project:
        """Persist edits to a project and refresh ``updated_at``."""
        project.name = require_text("name", project.name)
        project.color = normalize_color("color", project.color)
        project.updated_at = utcnow()
        return self.store.update(project)

    def delete_project(self, project_id: str) -> CascadeSummary:
        return self.store.delete(self.store.get(Project, project_id))

    def fetch_projects(self, search_text: str = "") -> list[Project]:
        """Projects by most recently updated, optionally name/description search."""
        projects = self.store.fetch(Project, order_by=[Project.updated_at.desc()])
        if search_text:
            needle = fold_text(search_text)
            projects = [
                p for p in projects
                if needle in fold_text(p.name) or needle in fold_text(p.description)
            ]
        return projects

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    def create_label(
        self,
        name: str,
        color: str = "FF9500",
        icon: str = "tag.fill",
        project_id: str | None = None,
    ) -> IssueLabel:
        label = IssueLabel(
            name=require_text("name", name),
            color=normalize_color("color", color),
            icon=icon,
            project_id=project_id,
        )
        with self.store.transaction() as session:
            if project_id is not None:
                self.store.require(session, Project, project_id)
            self.store.add_new(session, label)
        return label

    def update_label(self, label: IssueLabel) -> IssueLabel:
        label.name = require_text("name", label.name)
        label.color = normalize_color("color", label.color)
        return self.store.update(label)

    def delete_label(self, label_id: str) -> CascadeSummary:
        """Delete a label and detach it from every issue."""
        return self.store.delete(self.store.get(IssueLabel, label_id))

    def fetch_labels(self, project_id: str | None = None) -> list[IssueLabel]:
        if project_id is None:
            return self.store.fetch(IssueLabel)
        return self.store.fetch(IssueLabel, IssueLabel.project_id == project_id)
