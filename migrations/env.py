"""Alembic environment for Workboard.

The target database is ``Settings.database_url``; an explicit
``sqlalchemy.url`` in alembic.ini or on the command line (``-x url=...``)
takes precedence.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from workboard.db import models
from workboard.db.base import get_database_url

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = models.Base.metadata


def _target_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("url")
    return get_database_url(override or config.get_main_option("sqlalchemy.url"))


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    context.configure(
        url=_target_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(_target_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            # ALTER TABLE on SQLite goes through table copies
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
