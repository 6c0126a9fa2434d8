"""
Alembic environment configuration for labadmin.

The database URL comes from application settings (DATABASE_URL / .env) and is
converted to its synchronous form for migrations.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

import labadmin.models  # noqa: F401  registers every table on Base.metadata
from labadmin.core.config import settings
from labadmin.db.base import Base

SYNC_DATABASE_URL = settings.sync_database_url

# Alembic Config object
config = context.config

# Interpret the config file for Python logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

config.set_main_option("sqlalchemy.url", SYNC_DATABASE_URL)

# Set target metadata for autogenerate
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=SYNC_DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations online."""
    engine = create_engine(SYNC_DATABASE_URL, poolclass=pool.NullPool)

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
