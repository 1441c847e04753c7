import os

from alembic import context
from sqlalchemy import create_engine, pool

from infra.db.base import Base
import infra.db.models  # noqa


config = context.config

target_metadata = Base.metadata


def _db_url() -> str:
    # `alembic -x db_url=...` > run_migrations() > CAPACITY_DB_URL
    cli_args = context.get_x_argument(as_dictionary=True)
    url = (
        cli_args.get("db_url")
        or config.get_main_option("sqlalchemy.url")
        or (os.getenv("CAPACITY_DB_URL") or "").strip()
    )
    if not url:
        raise RuntimeError("No database URL configured for migrations.")
    return url


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        render_as_batch=True,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(url=_db_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(_db_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
