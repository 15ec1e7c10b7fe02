# File: alembic/env.py
import sys
import importlib
from pathlib import Path
from logging.config import fileConfig
from sqlalchemy import engine_from_config
from sqlalchemy import pool
from alembic import context

PROJECT_ROOT = Path(__file__).parent.parent

# Add the project root to the path
sys.path.append(str(PROJECT_ROOT))

from core.database import Base, settings


def import_models():
    """Load every app's models so autogenerate sees all workshop tables"""
    for app_dir in sorted((PROJECT_ROOT / 'apps').iterdir()):
        if app_dir.is_dir() and not app_dir.name.startswith(('_', '.')) and (app_dir / 'models.py').is_file():
            importlib.import_module(f'apps.{app_dir.name}.models')


import_models()
target_metadata = Base.metadata

config = context.config

# Keep the application's loggers when Alembic runs inside the API process
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# DATABASE_URL wins over the placeholder in alembic.ini
url = config.get_main_option("sqlalchemy.url")
if not url or url == "driver://":
    config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)


def run_migrations_offline():
    """Emit the migration SQL as a script (alembic upgrade head --sql)."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Apply migrations against a live connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            # SQLite cannot ALTER most columns in place
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
