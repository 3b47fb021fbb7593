"""Schema migrations applied at startup.

Runs Alembic's ``upgrade head`` against the service database using the
scripts shipped as package data in ``libs.core.common.db_migrations``.
Already-applied revisions are skipped, so running at every start is safe.

The database URL is handed to ``env.py`` as a SQLAlchemy ``URL`` object via
``Config.attributes`` rather than ``sqlalchemy.url``: ini interpolation would
mangle passwords containing ``%``.

Usage:
    from libs.core.common.migrations import run_migrations

    await asyncio.to_thread(run_migrations, credentials, config)
"""

from __future__ import annotations

import logging
from importlib.resources import files
from pathlib import Path
from typing import TYPE_CHECKING

from alembic import command
from alembic.config import Config
from alembic.util import CommandError
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError

from libs.core.common.db_pool import DatabaseSettings, ssl_mode_for
from libs.core.common.exceptions import MigrationError

if TYPE_CHECKING:
    from libs.platform.secrets.credentials import DbCredentials

logger = logging.getLogger(__name__)

# Installed alongside the code as package data
MIGRATIONS_DIR = Path(str(files("libs.core.common.db_migrations")))

URL_ATTRIBUTE = "database_url"


def build_database_url(credentials: DbCredentials, settings: DatabaseSettings) -> URL:
    """Build the SQLAlchemy URL (psycopg 3 driver) for migrations."""
    return URL.create(
        "postgresql+psycopg",
        username=credentials.username,
        password=credentials.password,
        host=settings.database_host,
        port=settings.database_port,
        database=settings.database_name,
        query={"sslmode": ssl_mode_for(settings.enable_mtls)},
    )


def build_alembic_config(url: URL | None = None, script_location: Path = MIGRATIONS_DIR) -> Config:
    """Build an Alembic Config pointing at the packaged migration scripts."""
    cfg = Config()
    cfg.set_main_option("script_location", str(script_location))
    if url is not None:
        cfg.attributes[URL_ATTRIBUTE] = url
    return cfg


def run_migrations(credentials: DbCredentials, settings: DatabaseSettings) -> None:
    """
    Apply all pending migrations (blocking; run in a worker thread from async code).

    Raises:
        MigrationError: If Alembic or the database rejects the upgrade
    """
    cfg = build_alembic_config(build_database_url(credentials, settings))
    logger.info("Running database migrations", extra={"script_location": str(MIGRATIONS_DIR)})
    try:
        command.upgrade(cfg, "head")
    except (CommandError, SQLAlchemyError, OSError) as e:
        raise MigrationError(f"alembic upgrade failed: {e}", cause=e) from e
    logger.info("Database migrations completed")
