"""Alembic migration environment for TeamDesk.

Migrations run synchronously over psycopg2 against the database described by
the application settings; the URL in alembic.ini is only a placeholder.
"""

import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool

# Make `teamdesk` importable when alembic runs from the repository root
sys.path.insert(0, str(Path(__file__).parent.parent))

from teamdesk.config import settings
from teamdesk.database import Base
from teamdesk import models  # noqa: F401  registers every table on Base.metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# ConfigParser treats % as interpolation
config.set_main_option("sqlalchemy.url", settings.sync_database_url.replace("%", "%%"))

target_metadata = Base.metadata


def include_object(object, name, type_, reflected, compare_to):
    """
    Keep autogenerate to TeamDesk's own tables.

    Tables that exist in the database but not in the models (other services
    sharing the schema, PostgreSQL catalogs) are never proposed for drop.
    """
    if type_ == "table" and reflected and compare_to is None:
        return False
    return True


def context_options() -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "compare_server_default": True,
        "include_object": include_object,
    }


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **context_options(),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a single unpooled connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, **context_options())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
