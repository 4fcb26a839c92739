"""Database engine, session factory, and declarative base.

  - Base           → the `reports` table and anything added beside it
  - async_session  → session factory shared by the report store, which is
                     used from request handlers and the autosave loop alike
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from reportstudio.config import settings


def _engine_kwargs(url: str) -> dict:
    # SQLite (local dev) has no connection pool sizing
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 20, "max_overflow": 10, "pool_pre_ping": True}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_kwargs(settings.database_url),
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    pass
