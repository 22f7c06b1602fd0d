"""EntityStore: transactional SQLite storage for every entity kind.

All writes go through ``transaction()``: one SQLAlchemy session, one commit,
a rollback on any failure. Stores over the same database URL share one
re-entrant lock per process, and every write transaction opens with
``BEGIN IMMEDIATE`` so the SQLite write lock is held from the first read.
Issue numbering relies on both; readers never observe a half-applied cascade.

Usage:
    store = EntityStore(engine)
    project = store.insert(Project(name="CodingFlow"))
    issues = store.fetch(Issue, Issue.project_id == project.id,
                         order_by=[Issue.updated_at.desc()])
    store.delete(project)   # cascades, see RelationshipManager
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, TypeVar

from sqlalchemy import func, literal_column
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from codingflow.errors import CodingFlowError, DuplicateKeyError, NotFoundError, PersistenceError
from codingflow.models.cycle import Cycle
from codingflow.models.issue import Comment, Issue, IssueLabelLink
from codingflow.models.project import IssueLabel, Project
from codingflow.models.tracking import AITrackingEvent, ContextSnapshot
from codingflow.store.relationships import CascadeSummary, RelationshipManager, require_entity

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=SQLModel)

# Every persisted table, in export order
ENTITY_KINDS: dict[str, type[SQLModel]] = {
    "project": Project,
    "issue_label": IssueLabel,
    "cycle": Cycle,
    "issue": Issue,
    "issue_label_link": IssueLabelLink,
    "comment": Comment,
    "ai_tracking_event": AITrackingEvent,
    "context_snapshot": ContextSnapshot,
}

# SQLite's implicit row id follows insertion order
INSERTION_ORDER = literal_column("rowid")

_writer_locks: dict[str, threading.RLock] = {}
_writer_locks_guard = threading.Lock()


def writer_lock(engine: Engine) -> threading.RLock:
    """The process-wide lock for ``engine``'s database, shared across engines."""
    key = engine.url.render_as_string(hide_password=False)
    with _writer_locks_guard:
        return _writer_locks.setdefault(key, threading.RLock())


class EntityStore:
    """Durable table storage with insert / update / delete / fetch."""

    def __init__(self, engine: Engine, relationships: RelationshipManager | None = None) -> None:
        self.engine = engine
        self.relationships = relationships or RelationshipManager()
        self._lock = writer_lock(engine)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Run a unit of work atomically; translate storage failures.

        Domain errors raised inside the block (NotFoundError,
        ValidationError, ...) roll back and propagate unchanged.
        """
        with self._lock:
            session = Session(self.engine, expire_on_commit=False)
            try:
                if self.engine.dialect.name == "sqlite":
                    session.connection().exec_driver_sql("BEGIN IMMEDIATE")
                yield session
                session.commit()
            except CodingFlowError:
                session.rollback()
                raise
            except IntegrityError as e:
                session.rollback()
                logger.error("Constraint violation, transaction rolled back: %s", e.orig)
                raise PersistenceError(f"Constraint violation: {e.orig}") from e
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("Storage failure, transaction rolled back: %s", e)
                raise PersistenceError(f"Storage failure: {e}") from e
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    @contextmanager
    def reading(self) -> Iterator[Session]:
        """Read-only session. Failures are logged and raised, never hidden."""
        with self._lock:
            session = Session(self.engine, expire_on_commit=False)
            try:
                yield session
            except SQLAlchemyError as e:
                logger.error("Query failed: %s", e)
                raise PersistenceError(f"Query failed: {e}") from e
            finally:
                session.close()

    # ------------------------------------------------------------------
    # Session-level helpers (used inside transaction()/reading())
    # ------------------------------------------------------------------

    @staticmethod
    def require(session: Session, kind: type[T], entity_id: str | None) -> T:
        """Load an entity or raise NotFoundError."""
        return require_entity(session, kind, entity_id)

    @staticmethod
    def add_new(session: Session, entity: T) -> T:
        """Stage an insert, rejecting a colliding primary key."""
        kind = type(entity)
        if session.get(kind, entity.id) is not None:
            raise DuplicateKeyError(kind.__name__, entity.id)
        session.add(entity)
        return entity

    @staticmethod
    def query(session: Session, kind: type[T], *where: Any, order_by: list | None = None) -> list[T]:
        stmt = select(kind)
        for clause in where:
            stmt = stmt.where(clause)
        for ordering in order_by or []:
            stmt = stmt.order_by(ordering)
        stmt = stmt.order_by(INSERTION_ORDER)
        return list(session.exec(stmt).all())

    # ------------------------------------------------------------------
    # Public contract
    # ------------------------------------------------------------------

    def insert(self, entity: T) -> T:
        """Persist a new entity. Raises DuplicateKeyError if its id exists."""
        with self.transaction() as session:
            self.add_new(session, entity)
        logger.debug("Inserted %s %s", type(entity).__name__, entity.id[:8])
        return entity

    def update(self, entity: T) -> T:
        """Overwrite the stored row with the entity's current field values."""
        kind = type(entity)
        with self.transaction() as session:
            self.require(session, kind, entity.id)
            merged = session.merge(entity)
        logger.debug("Updated %s %s", kind.__name__, entity.id[:8])
        return merged

    def delete(self, entity: SQLModel) -> CascadeSummary:
        """Delete an entity together with its cascade set, atomically."""
        with self.transaction() as session:
            summary = self.relationships.delete(session, type(entity), entity.id)
        logger.info("Deleted %s %s (%s)", type(entity).__name__, entity.id[:8], summary)
        return summary

    def get(self, kind: type[T], entity_id: str) -> T:
        with self.reading() as session:
            return self.require(session, kind, entity_id)

    def find(self, kind: type[T], entity_id: str) -> T | None:
        with self.reading() as session:
            return session.get(kind, entity_id)

    def fetch(self, kind: type[T], *where: Any, order_by: list | None = None) -> list[T]:
        """Rows of ``kind`` matching every predicate, in the given order.

        Rows that tie on ``order_by`` (or all rows, without one) come back
        in insertion order.
        """
        with self.reading() as session:
            return self.query(session, kind, *where, order_by=order_by)

    def count(self, kind: type[SQLModel], *where: Any) -> int:
        stmt = select(func.count()).select_from(kind)
        for clause in where:
            stmt = stmt.where(clause)
        with self.reading() as session:
            return session.exec(stmt).one()

    def read_all(self, kind: type[T] | str) -> list[T]:
        """Full-table read, for exporters."""
        if isinstance(kind, str):
            try:
                kind = ENTITY_KINDS[kind]
            except KeyError:
                raise NotFoundError("entity kind", kind) from None
        return self.fetch(kind)
