from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from typing import Iterator, Optional
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()

_IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


class Database:
    """
    Handle on the backing store.

    The engine (and its connection pool) is created on first use and kept
    for the lifetime of the handle. close() releases it and may be called
    any number of times.
    """

    def __init__(self, url: str):
        self.url = url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            logger.info("Creating database engine...")
            kwargs = {}
            if self.url.startswith("sqlite"):
                # Requests are served from a threadpool
                kwargs["connect_args"] = {"check_same_thread": False}
                if self.url in _IN_MEMORY_URLS:
                    kwargs["poolclass"] = StaticPool
            self._engine = create_engine(self.url, **kwargs)
            self._session_factory = sessionmaker(
                bind=self._engine, autocommit=False, autoflush=False
            )
            logger.info(f"Connected to database ({self._engine.dialect.name})")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def init_db(self) -> None:
        # Register the models on Base before creating tables
        from weekly_tracker.models import timesheet  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Timesheets table ready")

    def session(self) -> Session:
        if self._session_factory is None:
            self.engine
        return self._session_factory()

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database engine disposed")


def get_db(request: Request) -> Iterator[Session]:
    """Request-scoped session bound to the application's Database."""
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
