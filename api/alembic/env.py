"""
Alembic environment for the EasyEnglish schema.

The database URL comes from application settings (DATABASE_URL), already
normalised by app.core.database, so alembic.ini carries no connection string.
"""
from alembic import context
from sqlmodel import SQLModel

from app.core.database import engine, db_url

# Registers user, paragraph, exercise_attempt and pdf_job on SQLModel.metadata
from app.models import models  # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", db_url)

target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of executing it."""
    context.configure(
        url=db_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against the application engine."""
    with engine.connect() as connection:
        # SQLite cannot ALTER most constraints in place; batch mode rebuilds tables
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
