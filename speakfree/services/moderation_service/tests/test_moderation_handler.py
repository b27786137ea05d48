"""Tests for the Moderation Service handler and its log repository."""
import json
from contextlib import contextmanager

import pytest
from unittest.mock import patch, MagicMock

from psycopg2 import errors as pg_errors

from speakfree.shared.models import ContentSeverity, ContentType, ModerationVerdict
from speakfree.shared.utils import configure_pii_salt
from speakfree.services.moderation_service.moderation_repository import (
    ModerationLogRepository,
)


@pytest.fixture(autouse=True)
def setup_pii_salt():
    configure_pii_salt("test_salt_that_is_at_least_32_characters_long")


@pytest.fixture
def handler_module():
    from speakfree.services.moderation_service import handler
    return handler


@pytest.fixture
def client(handler_module):
    handler_module.app.config['TESTING'] = True
    with handler_module.app.test_client() as client:
        yield client


def make_connection_manager(fetchall=None):
    cursor = MagicMock()
    cursor.__enter__.return_value = cursor
    cursor.fetchall.return_value = fetchall or []
    cursor.rowcount = 1
    conn = MagicMock()
    conn.cursor.return_value = cursor

    @contextmanager
    def get_connection():
        yield conn

    manager = MagicMock()
    manager.get_connection = get_connection
    return manager, cursor


class TestModerationLogRepository:

    def test_record_truncates_message(self):
        manager, cursor = make_connection_manager()
        verdict = ModerationVerdict(
            allowed=False,
            score=18,
            content_type=ContentType.VIOLENCE,
            content_severity=ContentSeverity.HIGH,
        )

        assert ModerationLogRepository(manager).record("x" * 150, verdict) is True

        params = cursor.execute.call_args.args[1]
        assert len(params[0]) == 100
        assert params[1:5] == [18, "violence", "high", "blocked"]

    def test_record_failure_returns_false(self):
        manager, cursor = make_connection_manager()
        cursor.execute.side_effect = pg_errors.QueryCanceled("statement timeout")

        assert ModerationLogRepository(manager).record(
            "bonjour", ModerationVerdict(allowed=True, score=0)
        ) is False

    def test_stats_aggregates_groups(self):
        manager, _ = make_connection_manager(fetchall=[
            ("violence", "blocked", 3),
            ("unknown", "allowed", 10),
            ("personal_info", "allowed", 2),
        ])

        stats = ModerationLogRepository(manager).stats()

        assert stats == {
            "totalChecks": 15,
            "blocked": 3,
            "allowed": 12,
            "types": {"violence": 3, "unknown": 10, "personal_info": 2},
        }


class TestModerationEndpoints:

    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert json.loads(response.data)['service'] == 'moderation-service'

    def test_check_blocks_threat(self, client, handler_module):
        with patch.object(handler_module.gate, "moderation_log") as moderation_log:
            response = client.post('/check', json={'message': 'Je vais te tuer'})

        moderation_log.record.assert_called_once()
        data = json.loads(response.data)
        assert response.status_code == 200
        assert data['allowed'] is False
        assert data['contentType'] == 'violence'
        assert data['score'] == 18

    def test_check_empty_message(self, client):
        response = client.post('/check', json={'message': ''})

        data = json.loads(response.data)
        assert data == {'allowed': False, 'reason': 'Le message ne peut pas être vide'}

    def test_analyze(self, client):
        response = client.post('/analyze', json={'text': 'Salut tout le monde'})

        data = json.loads(response.data)
        assert data['allowed'] is True
        assert data['contentType'] == 'unknown'
        assert data['severity'] == 'low'

    def test_stats_error(self, client, handler_module):
        with patch.object(handler_module, "moderation_log") as moderation_log:
            moderation_log.stats.side_effect = Exception("db down")
            response = client.get('/stats')

        assert response.status_code == 500
