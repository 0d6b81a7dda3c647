# backend/alembic/env.py
from logging.config import fileConfig
import os

from sqlalchemy import engine_from_config, pool
from alembic import context

from eventra.models import Base

# Alembic Config object
config = context.config

ASYNC_TO_SYNC_DRIVERS = (("+asyncpg", "+psycopg2"), ("+aiosqlite", ""))


def _sync_url(url: str | None) -> str | None:
    """Alembic runs synchronously: swap async drivers for their sync counterparts."""
    if not url:
        return url
    for async_driver, sync_driver in ASYNC_TO_SYNC_DRIVERS:
        url = url.replace(async_driver, sync_driver)
    return url


# DATABASE_URL (shared with the app) wins over alembic.ini
url = _sync_url(os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url"))
if url:
    config.set_main_option("sqlalchemy.url", url)

if config.config_file_name:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline():
    """Run migrations in 'offline' mode (SQL script generation)."""
    url = config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError(
            "No sqlalchemy.url configured for Alembic. Set DATABASE_URL or edit alembic.ini."
        )

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Run migrations in 'online' mode (connect to DB and run)."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            # SQLite cannot ALTER constraints in place
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
