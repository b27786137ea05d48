"""Tests for the Intake Service HTTP handler."""
import json
from datetime import datetime

import pytest
from unittest.mock import patch, MagicMock

from speakfree.shared.models import School
from speakfree.shared.utils import configure_pii_salt
from speakfree.services.intake_service.conversation_repository import ConversationRecord
from speakfree.services.intake_service.dialogue import DialogueStateMachine
from speakfree.services.intake_service.finalizer import FinalizationResult
from speakfree.services.intake_service.session_store import InMemorySessionStore


@pytest.fixture(autouse=True)
def setup_pii_salt():
    configure_pii_salt("test_salt_that_is_at_least_32_characters_long")


@pytest.fixture
def handler_module():
    from speakfree.services.intake_service import handler
    return handler


@pytest.fixture
def client(handler_module):
    handler_module.app.config['TESTING'] = True
    with handler_module.app.test_client() as client:
        yield client


@pytest.fixture
def dialogue(handler_module):
    """Dialogue with in-memory collaborators in place of the database."""
    directory = MagicMock()
    directory.find_by_code.return_value = School(id=1, school_code="ECO3847", name="Collège Jean Moulin")
    finalizer = MagicMock()
    finalizer.finalize.return_value = FinalizationResult(
        success=True, report_code="SF-1-ABCDE", access_code="123456"
    )
    machine = DialogueStateMachine(
        InMemorySessionStore(), directory, finalizer, conversations=MagicMock()
    )
    with patch.object(handler_module, "dialogue", machine):
        yield machine


class TestHealthEndpoints:

    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert json.loads(response.data)['service'] == 'intake-service'

    def test_ready_without_database(self, client, handler_module):
        with patch.object(handler_module, "connection_manager") as manager:
            manager.health_check.return_value = {"healthy": False, "status": "error"}
            response = client.get('/ready')

        assert response.status_code == 503


class TestConversationEndpoints:

    def test_init(self, client, dialogue):
        response = client.post('/init', json={}, headers={'X-Forwarded-For': '203.0.113.4, 10.0.0.1'})

        data = json.loads(response.data)
        assert response.status_code == 200
        assert data['success'] is True
        assert data['sessionId'].startswith('CHAT-')
        assert len(data['quickActions']) == 8
        assert dialogue.store.get(data['sessionId']).submitter_key == '203.0.113.4'

    def test_message_flow(self, client, dialogue):
        session_id = json.loads(client.post('/init', json={}).data)['sessionId']

        response = client.post('/message', json={
            'sessionId': session_id,
            'message': "J'ai vu une arme",
        })

        data = json.loads(response.data)
        assert response.status_code == 200
        assert data['context']['category'] == 'arme'
        assert data['context']['urgency'] == 'critique'
        assert data['reportCreated'] is False

    def test_message_invalid_session(self, client, dialogue):
        response = client.post('/message', json={'sessionId': 'CHAT-0-x', 'message': 'Bonjour'})

        assert response.status_code == 400
        assert json.loads(response.data) == {'success': False, 'message': 'Session invalide'}

    def test_message_empty(self, client, dialogue):
        session_id = json.loads(client.post('/init', json={}).data)['sessionId']

        response = client.post('/message', json={'sessionId': session_id, 'message': ''})

        assert response.status_code == 400

    def test_message_unexpected_error(self, client, handler_module):
        with patch.object(handler_module, "dialogue") as dialogue:
            dialogue.handle_message.side_effect = Exception("boom")
            response = client.post('/message', json={'sessionId': 'CHAT-1', 'message': 'x'})

        assert response.status_code == 500

    def test_face_photo(self, client, dialogue):
        session_id = json.loads(client.post('/init', json={}).data)['sessionId']

        response = client.post('/face-photo', json={
            'sessionId': session_id,
            'facePhotoPath': '/uploads/faces/face-1.jpg',
        })

        assert response.status_code == 200
        assert dialogue.store.get(session_id).face_photo == '/uploads/faces/face-1.jpg'

    def test_face_photo_missing_path(self, client, dialogue):
        session_id = json.loads(client.post('/init', json={}).data)['sessionId']

        response = client.post('/face-photo', json={'sessionId': session_id})

        assert response.status_code == 400


class TestAccessEndpoints:

    def test_verify_access(self, client, dialogue):
        dialogue.conversations.find_by_access_code.return_value = ConversationRecord(
            session_id="CHAT-1-abc",
            access_code="123456",
            status="active",
            created_at=datetime(2026, 3, 1, 12, 0),
        )
        dialogue.conversations.messages.return_value = []

        response = client.post('/verify-access', json={'accessCode': '123456'})

        data = json.loads(response.data)
        assert response.status_code == 200
        assert data['sessionId'] == 'CHAT-1-abc'

    def test_verify_access_invalid(self, client, dialogue):
        dialogue.conversations.find_by_access_code.return_value = None

        response = client.post('/verify-access', json={'accessCode': '000000'})

        assert response.status_code == 404
        assert json.loads(response.data)['message'] == "Code d'accès invalide"

    def test_verify_access_missing_code(self, client, dialogue):
        response = client.post('/verify-access', json={})

        assert response.status_code == 400

    def test_access_code_recovery(self, client, handler_module):
        with patch.object(handler_module, "conversations") as conversations:
            conversations.find_by_id.return_value = ConversationRecord(
                session_id="CHAT-1-abc", access_code="123456"
            )
            response = client.get('/access-code/CHAT-1-abc')

        assert json.loads(response.data)['accessCode'] == '123456'

    def test_access_code_unknown_session(self, client, handler_module):
        with patch.object(handler_module, "conversations") as conversations:
            conversations.find_by_id.return_value = None
            response = client.get('/access-code/CHAT-0-x')

        assert response.status_code == 404


class TestAdminEndpoints:

    def test_list_conversations(self, client, handler_module):
        with patch.object(handler_module, "conversations") as conversations:
            conversations.list_conversations.return_value = [{"session_id": "CHAT-1-abc"}]
            response = client.get('/admin/conversations?limit=10')

        conversations.list_conversations.assert_called_once_with(limit=10)
        assert json.loads(response.data)['conversations'] == [{"session_id": "CHAT-1-abc"}]

    def test_conversation_detail(self, client, handler_module):
        with patch.object(handler_module, "conversations") as conversations:
            conversations.find_by_id.return_value = None
            conversations.messages.return_value = [{"role": "user", "message": "Bonjour"}]
            response = client.get('/admin/conversations/CHAT-1-abc')

        data = json.loads(response.data)
        assert data['messages'] == [{"role": "user", "message": "Bonjour"}]
        assert data['conversation'] is None

    def test_delete_conversation(self, client, dialogue):
        dialogue.conversations.delete_conversation.return_value = True

        response = client.delete('/admin/conversations/CHAT-1-abc')

        assert response.status_code == 200

    def test_delete_unknown_conversation(self, client, dialogue):
        dialogue.conversations.delete_conversation.return_value = False

        response = client.delete('/admin/conversations/CHAT-0-x')

        assert response.status_code == 404

    def test_admin_reply(self, client, handler_module):
        with patch.object(handler_module, "conversations") as conversations:
            conversations.add_admin_reply.return_value = True
            response = client.post('/admin/reply', json={
                'sessionId': 'CHAT-1-abc',
                'message': 'Nous avons bien reçu ton message',
                'adminName': 'CPE',
            })

        assert response.status_code == 200
        conversations.add_admin_reply.assert_called_once_with(
            'CHAT-1-abc', 'Nous avons bien reçu ton message', 'CPE'
        )

    def test_admin_reply_missing_fields(self, client):
        response = client.post('/admin/reply', json={'sessionId': 'CHAT-1-abc'})

        assert response.status_code == 400
        assert json.loads(response.data)['message'] == 'Session ID et message requis'

    def test_admin_reply_unknown_conversation(self, client, handler_module):
        with patch.object(handler_module, "conversations") as conversations:
            conversations.add_admin_reply.return_value = False
            response = client.post('/admin/reply', json={'sessionId': 'CHAT-0-x', 'message': 'Bonjour'})

        assert response.status_code == 404


class TestUserPolling:

    def test_messages_since(self, client, handler_module):
        with patch.object(handler_module, "conversations") as conversations:
            conversations.messages.return_value = []
            response = client.get('/user/messages/CHAT-1-abc?since=2026-03-01T12:00:00')

        assert response.status_code == 200
        conversations.messages.assert_called_once_with('CHAT-1-abc', since='2026-03-01T12:00:00')

    def test_check_admin_reply(self, client, handler_module):
        with patch.object(handler_module, "conversations") as conversations:
            conversations.has_admin_reply.return_value = True
            response = client.get('/user/check-admin-reply/CHAT-1-abc')

        assert json.loads(response.data) == {'success': True, 'hasAdminReply': True}

    def test_check_admin_reply_error(self, client, handler_module):
        with patch.object(handler_module, "conversations") as conversations:
            conversations.has_admin_reply.side_effect = Exception("db down")
            response = client.get('/user/check-admin-reply/CHAT-1-abc')

        assert response.status_code == 500
