"""Alembic environment for the homepage backend.

URL precedence: ``Config.attributes["database_url"]`` (set by
libs.core.common.migrations) > ``-x url=...`` > DATABASE_URL env var.
"""

import os

from alembic import context
from sqlalchemy import create_engine, pool

config = context.config

# Migrations are written by hand; no autogenerate metadata
target_metadata = None


def get_url():
    url = config.attributes.get("database_url")
    if url is None:
        url = context.get_x_argument(as_dictionary=True).get("url")
    if url is None:
        url = os.environ.get("DATABASE_URL")
    if url is None:
        raise RuntimeError("Set DATABASE_URL or pass -x url=... to run migrations.")
    return url


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against a live connection."""
    connectable = create_engine(get_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
