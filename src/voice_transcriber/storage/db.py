"""
Инициализация базы данных и сессий SQLAlchemy.

Назначение:
- Создание engine (передаётся в сервисы явно, без глобального состояния)
- Контекстный менеджер для сессий
- Ошибки драйвера/подключения превращаются в StorageError
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import Engine, create_engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from voice_transcriber.common.errors import StorageError
from voice_transcriber.common.logging import get_project_logger

from .models import Base

log = get_project_logger()


def _engine_kwargs(dsn: str) -> dict:
    url = make_url(dsn)
    if url.get_backend_name() != "sqlite":
        return {"pool_pre_ping": True}
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if url.database in {None, "", ":memory:"}:
        # in-memory SQLite живёт в одном соединении: делим его между потоками
        kwargs["poolclass"] = StaticPool
    else:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return kwargs


class Database:
    def __init__(self, dsn: str, *, engine: Engine | None = None) -> None:
        self.dsn = dsn
        self.engine = engine or create_engine(dsn, **_engine_kwargs(dsn))
        self._session_factory = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    def create_all(self) -> None:
        """
        Автосоздание таблиц (dev/тесты). В prod используем alembic upgrade head.
        """
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(details={"err": str(e)[:200]}) from e

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Контекстный менеджер для работы с БД.

        Использование:
            with db.session() as session:
                session.add(...)

        IntegrityError пробрасывается как есть: её трактует вызывающий сервис
        (например, уникальность email).
        """
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            log.error("db_error", extra={"payload": {"error": str(e)[:300]}})
            raise StorageError(details={"err": str(e)[:200]}) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
