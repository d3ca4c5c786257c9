"""
Database lifecycle for the intake API.

The engine and its connection pool are owned by one `Database` object that
the application creates at startup and disposes at shutdown. Nothing opens a
connection at import time.

    database = Database(settings.DATABASE_URL)
    database.connect()      # build pool, ping, create tables (idempotent)
    with database.session() as db:
        ...
    database.dispose()      # release pooled connections
"""
import logging
import math
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.core.errors import PersistenceError
from app.models import Base

logger = logging.getLogger(__name__)


class Database:
    """Lazily-initialized connection pool plus session factory."""

    def __init__(
        self,
        url: str,
        pool_size: int = settings.DB_POOL_SIZE,
        max_overflow: int = settings.DB_MAX_OVERFLOW,
        pool_pre_ping: bool = settings.DB_POOL_PRE_PING,
        pool_timeout: float = settings.DB_POOL_TIMEOUT,
        connect_timeout: int = settings.DB_CONNECT_TIMEOUT,
        statement_timeout: Optional[float] = settings.PERSISTENCE_TIMEOUT_SECONDS,
        echo: bool = False,
    ):
        self.url = url
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._pool_pre_ping = pool_pre_ping
        self._pool_timeout = pool_timeout
        self._connect_timeout = connect_timeout
        self._statement_timeout = statement_timeout
        self._echo = echo
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        self._ensure_engine()
        return self._engine

    def _ensure_engine(self) -> sessionmaker:
        if self._engine is None:
            self._engine = self._create_engine()
            self._sessionmaker = sessionmaker(
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
                bind=self._engine,
            )
        return self._sessionmaker

    def connect_args(self, backend: str) -> Dict[str, Any]:
        """Driver arguments that bound every statement run on a connection."""
        if backend == "sqlite":
            # Waiting on a write lock is the only way a SQLite insert stalls
            return {
                "check_same_thread": False,
                "timeout": self._statement_timeout or self._connect_timeout,
            }

        connect_args: Dict[str, Any] = {}
        if backend in ("postgresql", "mysql"):
            connect_args["connect_timeout"] = self._connect_timeout
        if self._statement_timeout:
            if backend == "postgresql":
                millis = int(self._statement_timeout * 1000)
                connect_args["options"] = f"-c statement_timeout={millis}"
            elif backend == "mysql":
                seconds = math.ceil(self._statement_timeout)
                connect_args["read_timeout"] = seconds
                connect_args["write_timeout"] = seconds
        return connect_args

    def _create_engine(self) -> Engine:
        backend = make_url(self.url).get_backend_name()
        connect_args = self.connect_args(backend)

        if backend == "sqlite":
            # SQLite ignores pool sizing; sessions hop between worker threads
            return create_engine(self.url, connect_args=connect_args, echo=self._echo)

        return create_engine(
            self.url,
            pool_pre_ping=self._pool_pre_ping,
            pool_size=self._pool_size,
            max_overflow=self._max_overflow,
            pool_timeout=self._pool_timeout,
            pool_recycle=3600,
            connect_args=connect_args,
            echo=self._echo,
        )

    def connect(self) -> None:
        """Build the pool, verify the store answers and create missing tables."""
        try:
            engine = self.engine
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as exc:
            logger.error(
                "Database connection failed: %s",
                exc,
                extra={"event_name": "database_connect_failed"},
            )
            self.dispose()
            raise PersistenceError("Database unavailable") from exc

        logger.info(
            "Database connected backend=%s",
            engine.url.get_backend_name(),
            extra={"event_name": "database_connected"},
        )

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Borrow one pooled connection for one unit of work."""
        factory = self._ensure_engine()
        db = factory()
        try:
            yield db
        finally:
            db.close()

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.warning("Database ping failed: %s", exc)
            return False

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database pool disposed", extra={"event_name": "database_disposed"})
        self._engine = None
        self._sessionmaker = None
