"""AITrackingService: append-only AI activity log and context snapshots.

Tracking an event against an issue also folds it into the issue's AI
metadata (flag, tool, generation count, cumulative tokens) in the same
transaction.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from codingflow.config import settings
from codingflow.db.types import utcnow
from codingflow.models.issue import AITool, Issue
from codingflow.models.stats import AIStats
from codingflow.models.tracking import AITrackingEvent, ContextSnapshot
from codingflow.services.issues import local_midnight
from codingflow.services.validation import require_non_negative, require_percentage, require_text
from codingflow.store.entity_store import EntityStore

logger = logging.getLogger(__name__)


class AITrackingService:
    def __init__(self, store: EntityStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def track_ai_event(
        self,
        event_type: str,
        ai_tool: AITool | str,
        prompt_summary: str = "",
        code_files_changed: Iterable[str] = (),
        tokens_used: int = 0,
        issue_id: str | None = None,
    ) -> AITrackingEvent:
        """Append an AI event, updating the linked issue's AI metadata."""
        require_non_negative("tokens_used", tokens_used)
        tool = ai_tool.value if isinstance(ai_tool, AITool) else str(ai_tool)
        event = AITrackingEvent(
            event_type=require_text("event_type", event_type),
            ai_tool=tool,
            prompt_summary=prompt_summary,
            code_files_changed=list(code_files_changed),
            tokens_used=tokens_used,
            issue_id=issue_id,
        )

        with self.store.transaction() as session:
            if issue_id is not None:
                issue = self.store.require(session, Issue, issue_id)
                issue.is_ai_generated = True
                issue.ai_tool_used = tool
                issue.ai_generation_count += 1
                issue.ai_context_tokens = (issue.ai_context_tokens or 0) + tokens_used
                issue.updated_at = utcnow()
                session.add(issue)
            self.store.add_new(session, event)

        logger.debug("AI event %s via %s (%d tokens)", event.event_type, tool, tokens_used)
        return event

    def fetch_ai_events(self, issue_id: str | None = None, limit: int | None = None) -> list[AITrackingEvent]:
        """Newest first, at most ``limit`` (defaults to settings)."""
        limit = settings.ai_events_default_limit if limit is None else limit
        where = [AITrackingEvent.issue_id == issue_id] if issue_id is not None else []
        events = self.store.fetch(AITrackingEvent, *where, order_by=[AITrackingEvent.timestamp.desc()])
        return events[:limit]

    def ai_stats(self, now: datetime | None = None) -> AIStats:
        """Today's interactions and tokens, top tool, and AI issue share."""
        today = self.store.fetch(AITrackingEvent, AITrackingEvent.timestamp >= local_midnight(now))
        total_issues = self.store.count(Issue)
        ai_issues = self.store.count(Issue, Issue.is_ai_generated == True)  # noqa: E712

        most_used = AITool.UNKNOWN
        if today:
            tool, _ = Counter(e.ai_tool for e in today).most_common(1)[0]
            most_used = AITool.parse(tool)

        return AIStats(
            today_interactions=len(today),
            total_tokens_today=sum(e.tokens_used for e in today),
            most_used_tool=most_used,
            ai_generation_rate=ai_issues / total_issues * 100 if total_issues else 0.0,
        )

    # ------------------------------------------------------------------
    # Context snapshots
    # ------------------------------------------------------------------

    def save_context_snapshot(
        self,
        issue_id: str,
        completion_percentage: float,
        key_files: Iterable[str] = (),
        pending_items: Iterable[str] = (),
        notes: str = "",
    ) -> ContextSnapshot:
        require_percentage("completion_percentage", completion_percentage)
        snapshot = ContextSnapshot(
            completion_percentage=completion_percentage,
            key_files=list(key_files),
            pending_items=list(pending_items),
            notes=notes,
            issue_id=issue_id,
        )
        with self.store.transaction() as session:
            self.store.require(session, Issue, issue_id)
            self.store.add_new(session, snapshot)
        return snapshot

    def fetch_context_snapshots(self, issue_id: str) -> list[ContextSnapshot]:
        """Snapshots for an issue, newest first."""
        return self.store.fetch(
            ContextSnapshot,
            ContextSnapshot.issue_id == issue_id,
            order_by=[ContextSnapshot.timestamp.desc()],
        )
