"""Workspace: one store plus every service and engine bound to it.

This is the surface a presentation layer talks to:

    ws = Workspace.open()                       # settings.database_url
    p = ws.projects.create_project("CodingFlow")
    a = ws.issues.create_issue("Ship 1.0", project_id=p.id)
    ws.query.fetch_issues(IssueQuery(project_id=p.id, search_text="ship"))
    ws.project_stats.stats(p.id).completion_rate
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.engine import Engine

from codingflow.db.database import create_db_and_tables, get_engine, make_engine
from codingflow.engines.cycle_stats import CycleStatsEngine
from codingflow.engines.issue_query import IssueQueryEngine
from codingflow.engines.project_stats import ProjectStatsEngine
from codingflow.services.ai_tracking import AITrackingService
from codingflow.services.cycles import CycleService
from codingflow.services.issues import IssueService
from codingflow.services.projects import ProjectService
from codingflow.store.entity_store import ENTITY_KINDS, EntityStore

logger = logging.getLogger(__name__)


class Workspace:
    def __init__(self, engine: Engine) -> None:
        self.store = EntityStore(engine)
        self.projects = ProjectService(self.store)
        self.issues = IssueService(self.store)
        self.cycles = CycleService(self.store)
        self.ai = AITrackingService(self.store)
        self.query = IssueQueryEngine(self.store)
        self.cycle_stats = CycleStatsEngine(self.store)
        self.project_stats = ProjectStatsEngine(self.store)

    @classmethod
    def open(cls, database_url: str | None = None, create_tables: bool = True) -> Workspace:
        """Open the configured database (or ``database_url``)."""
        engine = make_engine(database_url) if database_url else get_engine()
        if create_tables:
            create_db_and_tables(engine)
        return cls(engine)

    def export(self) -> dict[str, list[dict[str, Any]]]:
        """Every table as JSON-ready row dicts, keyed by table name."""
        data = {
            name: [row.model_dump(mode="json") for row in self.store.read_all(kind)]
            for name, kind in ENTITY_KINDS.items()
        }
        logger.info("Exported %d rows", sum(len(rows) for rows in data.values()))
        return data
