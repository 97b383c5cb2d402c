from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ledger.core.config import settings


def is_sqlite(dsn: str) -> bool:
    return dsn.startswith("sqlite")


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """SQLite ignores foreign keys unless asked per connection."""

    @event.listens_for(target, "connect")
    def _set_pragma(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(
    settings.APP_DATABASE_DSN,
    connect_args=({"check_same_thread": False} if is_sqlite(settings.APP_DATABASE_DSN) else {}),
    pool_pre_ping=not is_sqlite(settings.APP_DATABASE_DSN),
)
if is_sqlite(settings.APP_DATABASE_DSN):
    enable_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
