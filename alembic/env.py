"""
Alembic environment for the Guesty sync schema.

Only objects in SCHEMA are managed, and the version table lives there too,
so the schema is created before any revision runs.
"""

from logging.config import fileConfig
from typing import Any

from sqlalchemy import engine_from_config, pool
from sqlalchemy.schema import CreateSchema

from alembic import context  # type: ignore[attr-defined]
from sync_guesty.config import DATABASE_URL, SCHEMA
from sync_guesty.models.base import Base
from sync_guesty.models.calendar_days import CalendarDay  # noqa: F401
from sync_guesty.models.hosts import Host  # noqa: F401
from sync_guesty.models.listings import Listing  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

config.set_main_option("sqlalchemy.url", DATABASE_URL or "")


def include_object(object_: Any, name: str, type_: str, reflected: bool, compare_to: Any) -> bool:
    return getattr(object_, "schema", SCHEMA) == SCHEMA


def context_options() -> dict[str, Any]:
    """Options shared by offline and online runs."""
    return {
        "target_metadata": Base.metadata,
        "include_schemas": True,
        "include_object": include_object,
        "version_table_schema": SCHEMA,
        "compare_type": True,
    }


def run_migrations_offline() -> None:
    """Emit migration SQL without a database connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **context_options(),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against DATABASE_URL."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        connection.execute(CreateSchema(SCHEMA, if_not_exists=True))
        connection.commit()

        context.configure(connection=connection, **context_options())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
