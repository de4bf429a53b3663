"""SQLAlchemy engine, declarative base and session factory."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import JSON, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from datacollect.config import get_settings

Base = declarative_base()

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class DatabaseManager:
    """Lazily builds the engine and session factory from settings."""

    def __init__(self, database_url: Optional[str] = None) -> None:
        self._database_url = database_url
        self._engine: Optional[Engine] = None
        self._session_local: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            settings = get_settings()
            url = (
                make_url(self._database_url)
                if self._database_url
                else settings.database_url_obj
            )
            if url.get_backend_name() == "sqlite":
                self._engine = create_engine(
                    url,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
            else:
                self._engine = create_engine(
                    url,
                    pool_size=settings.database_pool_size,
                    max_overflow=settings.database_max_overflow,
                    pool_pre_ping=True,
                )
        return self._engine

    @property
    def session_local(self) -> sessionmaker:
        if self._session_local is None:
            self._session_local = sessionmaker(
                bind=self.engine, autocommit=False, autoflush=False
            )
        return self._session_local

    def create_all(self) -> None:
        # Import models so they register on Base.metadata
        import datacollect.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)


db_manager = DatabaseManager()
