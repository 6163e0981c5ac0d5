import os
from logging.config import fileConfig
from sqlalchemy import pool, create_engine
from alembic import context
from dotenv import load_dotenv

# Load environment variables from .env at the repository root
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env'))

config = context.config

if config.config_file_name:
    fileConfig(config.config_file_name)

# DATABASE_URL wins over alembic.ini
DATABASE_URL = os.getenv("DATABASE_URL")
if DATABASE_URL:
    # Escape % characters for ConfigParser (% -> %%)
    config.set_main_option("sqlalchemy.url", DATABASE_URL.replace("%", "%%"))

# Import all models so autogenerate sees every table
from database.models import Base
from database import marketplace_models  # noqa: F401

target_metadata = Base.metadata


def _database_url():
    return DATABASE_URL or config.get_main_option("sqlalchemy.url")


def run_migrations_offline():
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = create_engine(_database_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
