"""Migration runner for the tracker tables.

Targets get_database_url(), the URL Workspace.open() and the CLI resolve,
and compares against the metadata of the eight codingflow tables (seven
entities plus issue_label_link). SQLite cannot ALTER most columns, so both
modes render batch operations.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlmodel import SQLModel, create_engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Registers every table on SQLModel.metadata
from codingflow.models.cycle import Cycle  # noqa: F401, E402
from codingflow.models.issue import Comment, Issue, IssueLabelLink  # noqa: F401, E402
from codingflow.models.project import IssueLabel, Project  # noqa: F401, E402
from codingflow.models.tracking import AITrackingEvent, ContextSnapshot  # noqa: F401, E402

target_metadata = SQLModel.metadata

from codingflow.db.database import get_database_url  # noqa: E402

DATABASE_URL = get_database_url()


def run_migrations_offline() -> None:
    """Write the migration SQL to stdout (alembic upgrade --sql)."""
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a dedicated, unpooled connection."""
    connectable = create_engine(DATABASE_URL, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
