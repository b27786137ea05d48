"""Tests for base repository pattern."""
import pytest
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict
from unittest.mock import MagicMock

from psycopg2 import errors as pg_errors

from speakfree.shared.database.repository import (
    BaseRepository,
    RepositoryError,
    NotFoundError,
    DuplicateError,
)


@dataclass
class SampleEntity:
    id: str
    name: str
    value: int


class SampleRepository(BaseRepository[SampleEntity]):
    """Concrete repository for testing."""

    columns = ("id", "name", "value")

    def _row_to_entity(self, row: tuple) -> SampleEntity:
        return SampleEntity(id=row[0], name=row[1], value=row[2])

    def _entity_to_params(self, entity: SampleEntity) -> Dict[str, Any]:
        return {
            "id": entity.id,
            "name": entity.name,
            "value": entity.value,
        }


def make_connection_manager(fetchone=None, fetchall=None, rowcount=1):
    cursor = MagicMock()
    cursor.__enter__.return_value = cursor
    cursor.fetchone.return_value = fetchone
    cursor.fetchall.return_value = fetchall or []
    cursor.rowcount = rowcount
    conn = MagicMock()
    conn.cursor.return_value = cursor

    @contextmanager
    def get_connection():
        yield conn

    manager = MagicMock()
    manager.get_connection = get_connection
    return manager, conn, cursor


class TestRepositoryExceptions:

    def test_not_found_error_is_repository_error(self):
        assert isinstance(NotFoundError("missing"), RepositoryError)

    def test_duplicate_error_is_repository_error(self):
        assert isinstance(DuplicateError("dup"), RepositoryError)


class TestBaseRepository:

    def test_find_by_id_maps_row(self):
        manager, _, cursor = make_connection_manager(fetchone=("id_1", "name", 42))
        repository = SampleRepository(manager, "samples")

        entity = repository.find_by_id("id_1")

        assert entity == SampleEntity(id="id_1", name="name", value=42)
        query, params = cursor.execute.call_args.args
        assert "SELECT id, name, value FROM samples" in query
        assert params == ("id_1",)

    def test_find_by_id_returns_none(self):
        manager, _, _ = make_connection_manager(fetchone=None)
        repository = SampleRepository(manager, "samples")

        assert repository.find_by_id("missing") is None

    def test_find_all(self):
        manager, _, _ = make_connection_manager(
            fetchall=[("a", "first", 1), ("b", "second", 2)]
        )
        repository = SampleRepository(manager, "samples")

        entities = repository.find_all(limit=2)

        assert [e.id for e in entities] == ["a", "b"]

    def test_insert_commits(self):
        manager, conn, cursor = make_connection_manager()
        repository = SampleRepository(manager, "samples")

        repository.insert(SampleEntity(id="x", name="n", value=3))

        query, params = cursor.execute.call_args.args
        assert query.startswith("INSERT INTO samples (id, name, value)")
        assert params == ["x", "n", 3]
        conn.commit.assert_called_once()

    def test_insert_unique_violation_raises_duplicate(self):
        manager, conn, cursor = make_connection_manager()
        cursor.execute.side_effect = pg_errors.UniqueViolation("duplicate key")
        repository = SampleRepository(manager, "samples")

        with pytest.raises(DuplicateError):
            repository.insert(SampleEntity(id="x", name="n", value=3))

        conn.rollback.assert_called_once()

    def test_database_error_is_wrapped(self):
        manager, _, cursor = make_connection_manager()
        cursor.execute.side_effect = pg_errors.QueryCanceled("statement timeout")
        repository = SampleRepository(manager, "samples")

        with pytest.raises(RepositoryError):
            repository.find_by_id("x")

    def test_delete(self):
        manager, _, _ = make_connection_manager(rowcount=1)
        repository = SampleRepository(manager, "samples")

        assert repository.delete("x") is True

    def test_delete_missing(self):
        manager, _, _ = make_connection_manager(rowcount=0)
        repository = SampleRepository(manager, "samples")

        assert repository.delete("x") is False

    def test_count(self):
        manager, _, _ = make_connection_manager(fetchone=(7,))
        repository = SampleRepository(manager, "samples")

        assert repository.count() == 7
