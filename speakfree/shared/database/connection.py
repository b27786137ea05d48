"""PostgreSQL connection pool shared by every SpeakFree service.

Request threads and the background scoring workers borrow connections
from one psycopg2 ThreadedConnectionPool. Each session carries a
statement timeout, and the readiness probes go through health_check().
"""
import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Optional

from psycopg2 import pool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatabaseConfig:
    """Where the pool connects and how large it may grow."""
    host: str
    port: int = 5432
    database: str = "speakfree"
    username: str = ""
    password: str = ""
    min_connections: int = 2
    max_connections: int = 10
    connect_timeout: int = 10
    statement_timeout_ms: int = 5000
    ssl_mode: str = "prefer"

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Read DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD,
        DB_MIN_CONN, DB_MAX_CONN, DB_STATEMENT_TIMEOUT_MS and DB_SSL_MODE.
        """
        env = os.environ
        return cls(
            host=env.get("DB_HOST", "localhost"),
            port=int(env.get("DB_PORT", "5432")),
            database=env.get("DB_NAME", "speakfree"),
            username=env.get("DB_USER", ""),
            password=env.get("DB_PASSWORD", ""),
            min_connections=int(env.get("DB_MIN_CONN", "2")),
            max_connections=int(env.get("DB_MAX_CONN", "10")),
            statement_timeout_ms=int(env.get("DB_STATEMENT_TIMEOUT_MS", "5000")),
            ssl_mode=env.get("DB_SSL_MODE", "prefer"),
        )

    def connect_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments handed to psycopg2 for every pooled connection."""
        return {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.username,
            "password": self.password,
            "connect_timeout": self.connect_timeout,
            "sslmode": self.ssl_mode,
            "options": f"-c statement_timeout={self.statement_timeout_ms}",
        }


class ConnectionManager:
    """Lazily opened connection pool.

    Importing a handler module builds a manager but opens nothing; the
    pool comes up on the first borrowed connection.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._pool: Optional[pool.ThreadedConnectionPool] = None
        self._initialized = False
        self._init_lock = threading.Lock()

    def initialize(self) -> None:
        """Open the pool. Safe to call more than once."""
        with self._init_lock:
            if self._initialized:
                return
            try:
                self._pool = pool.ThreadedConnectionPool(
                    minconn=self.config.min_connections,
                    maxconn=self.config.max_connections,
                    **self.config.connect_kwargs(),
                )
            except Exception as e:
                logger.error(
                    "DB_POOL_OPEN_FAILED",
                    extra={
                        "host": self.config.host,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    }
                )
                raise
            self._initialized = True

        logger.info(
            "DB_POOL_OPENED",
            extra={
                "host": self.config.host,
                "database": self.config.database,
                "max_connections": self.config.max_connections,
                "statement_timeout_ms": self.config.statement_timeout_ms,
            }
        )

    @contextmanager
    def get_connection(self):
        """Borrow a connection; it goes back to the pool on exit.

            with manager.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1")
        """
        if not self._initialized:
            self.initialize()

        conn = self._pool.getconn()
        try:
            yield conn
        finally:
            self._pool.putconn(conn)

    def health_check(self) -> Dict[str, Any]:
        """Round-trip a trivial query; used by the /ready endpoints."""
        if not self._initialized:
            return {"status": "not_initialized", "healthy": False}

        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1")
                    cur.fetchone()
        except Exception as e:
            logger.error(
                "DB_HEALTH_CHECK_FAILED",
                extra={"error": str(e), "error_type": type(e).__name__}
            )
            return {"status": "error", "healthy": False, "error": str(e)}

        return {
            "status": "connected",
            "healthy": True,
            "host": self.config.host,
            "database": self.config.database,
        }

    def close(self) -> None:
        with self._init_lock:
            if self._pool is not None:
                self._pool.closeall()
                logger.info("DB_POOL_CLOSED", extra={"host": self.config.host})
            self._pool = None
            self._initialized = False


_connection_manager: Optional[ConnectionManager] = None


def get_connection_manager() -> ConnectionManager:
    """Process-wide manager built from the environment on first call."""
    global _connection_manager

    if _connection_manager is None:
        _connection_manager = ConnectionManager(DatabaseConfig.from_env())
    return _connection_manager
