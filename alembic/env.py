"""Migrations for the users, devices, subscriptions and sync group tables."""

import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from podsync.config import Config
from podsync.db.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def get_url():
    """ALEMBIC_DATABASE_URL if set, else the server's DATABASE_URL."""
    return os.getenv("ALEMBIC_DATABASE_URL") or Config().DATABASE_URL


def _configure(url, **kwargs):
    # SQLite cannot ALTER most constraints in place
    context.configure(
        target_metadata=Base.metadata,
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    url = get_url()
    _configure(url, url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = get_url()
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = url
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with engine.connect() as connection:
        _configure(url, connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
