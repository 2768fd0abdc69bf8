"""Alembic environment for the beneficiary hub schema.

The migration URL comes from DATABASE_URL_MIGRATIONS (a direct, non-pooled
connection on Supabase), then DATABASE_URL, then alembic.ini. Online runs
go through build_engine() so the SSL policy matches the API.
"""

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "apps" / "api"))

from bhub_api.db.engine import build_engine  # noqa: E402
from bhub_api.db.models import Base  # noqa: E402

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _migration_url() -> str:
    for candidate in (
        os.getenv("DATABASE_URL_MIGRATIONS"),
        os.getenv("DATABASE_URL"),
        config.get_main_option("sqlalchemy.url"),
    ):
        if candidate:
            return candidate
    raise ValueError(
        "No migration database URL: set DATABASE_URL_MIGRATIONS or DATABASE_URL, "
        "or sqlalchemy.url in alembic.ini."
    )


def _configure_and_run(**kwargs) -> None:
    context.configure(target_metadata=Base.metadata, compare_type=True, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


def main() -> None:
    url = _migration_url()
    if context.is_offline_mode():
        # Emit SQL only
        _configure_and_run(url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
        return

    with build_engine(url).connect() as connection:
        _configure_and_run(connection=connection)


main()
