import os
import sys
from pathlib import Path

# The project root must be importable before leadintake is loaded
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from logging.config import fileConfig  # noqa: E402
from sqlalchemy import engine_from_config, pool  # noqa: E402
from alembic import context  # noqa: E402
from leadintake.core.config import settings  # noqa: E402
from leadintake.models import Base  # noqa: E402


config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _migration_url() -> str:
    """Sync driver URL for migrations.

    ``ALEMBIC_DATABASE_URL`` wins when set (e.g. an owner role with DDL
    rights); otherwise the app's asyncpg URL is rewritten for psycopg2.
    """
    url = os.environ.get("ALEMBIC_DATABASE_URL") or settings.DATABASE_URL
    return url.replace("postgresql+asyncpg://", "postgresql://")


config.set_main_option("sqlalchemy.url", _migration_url())

target_metadata = Base.metadata


def include_object(obj, name, type_, reflected, compare_to):
    # The CRM shares its database; autogenerate only looks at crm_* tables
    if type_ == "table":
        return name.startswith("crm_")
    return True


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        include_object=include_object,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline():
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        _configure(connection=connection)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
