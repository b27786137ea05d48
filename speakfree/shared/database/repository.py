"""Base repository pattern for database operations.

Provides common row/entity mapping and query helpers shared by the
school directory, report, abuse-log, moderation-log and conversation
repositories.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

import psycopg2
from psycopg2 import errors as pg_errors

from .connection import ConnectionManager

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RepositoryError(Exception):
    """Base exception for repository errors."""
    pass


class NotFoundError(RepositoryError):
    """Entity not found in database."""
    pass


class DuplicateError(RepositoryError):
    """Duplicate entity already exists."""
    pass


class BaseRepository(ABC, Generic[T]):
    """Abstract base repository with common operations.

    Subclasses declare their table and column list and implement the
    row/entity conversion, while inheriting:
    - Connection management
    - Error wrapping (psycopg2 errors become RepositoryError)
    - Logging patterns
    """

    #: Columns selected by the generic finders, in row order
    columns: Tuple[str, ...] = ("*",)
    id_column: str = "id"

    def __init__(
        self,
        connection_manager: ConnectionManager,
        table_name: str,
    ):
        """Initialize repository.

        Args:
            connection_manager: Database connection manager
            table_name: Name of the database table
        """
        self.connection_manager = connection_manager
        self.table_name = table_name

        logger.info(
            "REPOSITORY_INITIALIZED",
            extra={"table_name": table_name}
        )

    @abstractmethod
    def _row_to_entity(self, row: tuple) -> T:
        """Convert database row to entity.

        Args:
            row: Database row tuple, ordered as ``columns``

        Returns:
            Entity instance
        """
        pass

    @abstractmethod
    def _entity_to_params(self, entity: T) -> Dict[str, Any]:
        """Convert entity to database parameters.

        Args:
            entity: Entity instance

        Returns:
            Dictionary of column names to values
        """
        pass

    @property
    def _select_list(self) -> str:
        return ", ".join(self.columns)

    def _fetch_one(self, query: str, params: Sequence[Any] = ()) -> Optional[tuple]:
        try:
            with self.connection_manager.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                    return cur.fetchone()
        except psycopg2.Error as e:
            raise RepositoryError(f"{self.table_name} query failed: {e}") from e

    def _fetch_all(self, query: str, params: Sequence[Any] = ()) -> List[tuple]:
        try:
            with self.connection_manager.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                    return list(cur.fetchall())
        except psycopg2.Error as e:
            raise RepositoryError(f"{self.table_name} query failed: {e}") from e

    def _execute(self, query: str, params: Sequence[Any] = ()) -> int:
        """Run a write statement and commit.

        Returns:
            Number of affected rows

        Raises:
            DuplicateError: On unique constraint violation
            RepositoryError: On any other database error
        """
        try:
            with self.connection_manager.get_connection() as conn:
                try:
                    with conn.cursor() as cur:
                        cur.execute(query, params)
                        rowcount = cur.rowcount
                    conn.commit()
                    return rowcount
                except Exception:
                    conn.rollback()
                    raise
        except pg_errors.UniqueViolation as e:
            raise DuplicateError(f"Duplicate row in {self.table_name}: {e}") from e
        except psycopg2.Error as e:
            raise RepositoryError(f"{self.table_name} write failed: {e}") from e

    def find_by_id(self, entity_id: Any) -> Optional[T]:
        """Find entity by ID.

        Args:
            entity_id: Entity identifier

        Returns:
            Entity if found, None otherwise
        """
        row = self._fetch_one(
            f"SELECT {self._select_list} FROM {self.table_name} "
            f"WHERE {self.id_column} = %s",
            (entity_id,)
        )
        if row is None:
            return None
        return self._row_to_entity(row)

    def find_all(
        self,
        limit: int = 100,
        offset: int = 0,
    ) -> List[T]:
        """Find all entities with pagination, newest first."""
        rows = self._fetch_all(
            f"SELECT {self._select_list} FROM {self.table_name} "
            f"ORDER BY created_at DESC LIMIT %s OFFSET %s",
            (limit, offset)
        )
        return [self._row_to_entity(row) for row in rows]

    def insert(self, entity: T) -> T:
        """Insert a new entity.

        Args:
            entity: Entity to insert

        Returns:
            The inserted entity

        Raises:
            DuplicateError: If the entity already exists
        """
        params = self._entity_to_params(entity)
        columns = list(params.keys())
        placeholders = ", ".join(["%s"] * len(columns))

        self._execute(
            f"INSERT INTO {self.table_name} ({', '.join(columns)}) "
            f"VALUES ({placeholders})",
            list(params.values()),
        )
        return entity

    def delete(self, entity_id: Any) -> bool:
        """Delete entity by ID.

        Returns:
            True if deleted, False if not found
        """
        deleted = self._execute(
            f"DELETE FROM {self.table_name} WHERE {self.id_column} = %s",
            (entity_id,)
        )
        return deleted > 0

    def count(self) -> int:
        """Count total entities."""
        row = self._fetch_one(f"SELECT COUNT(*) FROM {self.table_name}")
        return row[0] if row else 0
