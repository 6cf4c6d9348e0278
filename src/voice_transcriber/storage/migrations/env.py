"""
Alembic env.py для схемы транскрибатора (users, transcripts).

- DSN берётся из DATABASE_DSN или из `alembic -x dsn=...`
- engine строится через storage.db.Database: те же параметры SQLite,
  что и у API (каталог файла БД создаётся заранее)
- для SQLite включён batch-режим: ALTER TABLE там почти не поддерживается
"""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import make_url

from voice_transcriber.common.config import get_settings
from voice_transcriber.storage.db import Database
from voice_transcriber.storage.models import Base

config = context.config

# При вызове из кода (тесты) логирование приложения не перенастраиваем
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _dsn() -> str:
    return context.get_x_argument(as_dictionary=True).get("dsn") or get_settings().database_dsn


def _is_sqlite(dsn: str) -> bool:
    return make_url(dsn).get_backend_name() == "sqlite"


def run_migrations_offline() -> None:
    dsn = _dsn()
    context.configure(
        url=dsn,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_is_sqlite(dsn),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    dsn = _dsn()
    database = Database(dsn)
    try:
        with database.engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                compare_type=True,
                render_as_batch=_is_sqlite(dsn),
            )

            with context.begin_transaction():
                context.run_migrations()
    finally:
        database.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
