"""Intake Service HTTP handler - guided reporting conversation.

Students open a session with /init and answer the assistant through
/message until the report is created. Administrators read and answer
conversations through the /admin routes; students poll /user routes.

Message text, contact details and IP addresses are never logged raw.
"""
import logging
import os

from flask import Flask, request, jsonify

from speakfree.shared.database import get_connection_manager
from speakfree.shared.utils import configure_pii_salt
from speakfree.services.abuse_service import (
    AbuseLogRepository,
    DetectionRules,
    FrequencyAnalyzer,
    ReportRepository,
    ReviewEventPublisher,
    ScoringQueue,
    TrustScorer,
)
from .config import IntakeConfig
from .conversation_repository import ConversationRepository
from .dialogue import DialogueStateMachine, IntakeError, SessionNotFoundError
from .directory import SchoolDirectory
from .finalizer import ReportFinalizer
from .session_store import InMemorySessionStore

logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)

# Configure PII salt from environment
pii_salt = os.getenv("PII_HASH_SALT", "default_dev_salt_change_in_production_32chars")
configure_pii_salt(pii_salt)

# Wire repositories, background scoring and the dialogue
connection_manager = get_connection_manager()
directory = SchoolDirectory(connection_manager)
reports = ReportRepository(connection_manager)
conversations = ConversationRepository(connection_manager)

rules = DetectionRules.from_env()
scoring_queue = ScoringQueue(
    scorer=TrustScorer(
        frequency=FrequencyAnalyzer(reports, rules=rules),
        abuse_log=AbuseLogRepository(connection_manager),
        rules=rules,
    ),
    reports=reports,
    publisher=ReviewEventPublisher(
        stream_name=os.getenv("KINESIS_STREAM_NAME", "speakfree-review-events"),
        enabled=os.getenv("REVIEW_PUBLISHING_ENABLED", "false").lower() == "true",
    ),
    max_workers=int(os.getenv("SCORING_WORKERS", "2")),
)

dialogue = DialogueStateMachine(
    store=InMemorySessionStore(),
    directory=directory,
    finalizer=ReportFinalizer(directory, reports, scoring_queue=scoring_queue),
    conversations=conversations,
    config=IntakeConfig.from_env(),
)


def _client_ip():
    """First address of X-Forwarded-For, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr


def _error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "intake-service",
    }), 200


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check - verifies database connectivity."""
    db_health = connection_manager.health_check()
    if not db_health.get("healthy"):
        return jsonify({"status": "not_ready", "database": db_health.get("status")}), 503
    return jsonify({"status": "ready"}), 200


@app.route("/init", methods=["POST"])
def init_session():
    """Open a conversation and return the welcome message."""
    try:
        session = dialogue.start_session(submitter_key=_client_ip())
        return jsonify(session.to_dict()), 200

    except Exception as e:
        logger.error(
            "INTAKE_INIT_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return _error("Erreur interne du serveur", 500)


@app.route("/message", methods=["POST"])
def post_message():
    """Answer one student message.

    Request Body:
        {"sessionId": "CHAT-...", "message": "Je suis victime de harcèlement"}

    Response:
        {
            "success": true,
            "aiResponse": "...",
            "context": {...},
            "quickActions": [{"label": "...", "message": "..."}],
            "reportCreated": false,
            "reportCode": null,
            "accessCode": null
        }
    """
    try:
        data = request.get_json(silent=True) or {}
        reply = dialogue.handle_message(data.get("sessionId"), data.get("message"))
        return jsonify(reply.to_dict()), 200

    except IntakeError as e:
        logger.warning("INTAKE_MESSAGE_REJECTED", extra={"reason": str(e)})
        return _error(str(e), 400)

    except Exception as e:
        logger.error(
            "INTAKE_MESSAGE_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return _error("Erreur interne du serveur", 500)


@app.route("/face-photo", methods=["POST"])
def face_photo():
    """Attach a stored face photo to a session.

    Request Body:
        {"sessionId": "CHAT-...", "facePhotoPath": "/uploads/faces/face-123.jpg"}
    """
    try:
        data = request.get_json(silent=True) or {}
        photo_path = data.get("facePhotoPath")
        dialogue.attach_face_photo(data.get("sessionId"), photo_path)
        return jsonify({
            "success": True,
            "message": "Photo enregistrée avec succès",
            "facePhotoPath": photo_path,
        }), 200

    except IntakeError as e:
        return _error(str(e), 400)

    except Exception as e:
        logger.error(
            "FACE_PHOTO_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return _error("Erreur interne du serveur", 500)


@app.route("/verify-access", methods=["POST"])
def verify_access():
    """Resume a conversation from its access code."""
    try:
        data = request.get_json(silent=True) or {}
        return jsonify(dialogue.resume(data.get("accessCode"))), 200

    except SessionNotFoundError as e:
        return _error(str(e), 404)

    except IntakeError as e:
        return _error(str(e), 400)

    except Exception as e:
        logger.error(
            "VERIFY_ACCESS_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return _error("Erreur serveur", 500)


@app.route("/access-code/<session_id>", methods=["GET"])
def access_code(session_id: str):
    """Recover the access code of a session."""
    try:
        record = conversations.find_by_id(session_id)
        if record is None:
            return _error("Session non trouvée", 404)
        return jsonify({"success": True, "accessCode": record.access_code}), 200

    except Exception as e:
        logger.error(
            "ACCESS_CODE_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return _error("Erreur serveur", 500)


@app.route("/admin/conversations", methods=["GET"])
def list_conversations():
    """Most recent conversations (default 50)."""
    try:
        limit = request.args.get("limit", 50, type=int)
        return jsonify({
            "success": True,
            "conversations": conversations.list_conversations(limit=limit),
        }), 200

    except Exception as e:
        logger.error(
            "LIST_CONVERSATIONS_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return _error("Erreur serveur", 500)


@app.route("/admin/conversations/<session_id>", methods=["GET"])
def conversation_detail(session_id: str):
    """Messages of one conversation."""
    try:
        record = conversations.find_by_id(session_id)
        return jsonify({
            "success": True,
            "messages": conversations.messages(session_id),
            "conversation": record.to_dict() if record else None,
        }), 200

    except Exception as e:
        logger.error(
            "CONVERSATION_DETAIL_ERROR",
            extra={"session_id": session_id, "error": str(e), "error_type": type(e).__name__}
        )
        return _error("Erreur serveur", 500)


@app.route("/admin/conversations/<session_id>", methods=["DELETE"])
def delete_conversation(session_id: str):
    """Delete a conversation, live and persisted."""
    try:
        dialogue.delete_session(session_id)
        return jsonify({"success": True, "message": "Conversation supprimée avec succès"}), 200

    except SessionNotFoundError as e:
        return _error(str(e), 404)

    except Exception as e:
        logger.error(
            "DELETE_CONVERSATION_ERROR",
            extra={"session_id": session_id, "error": str(e), "error_type": type(e).__name__}
        )
        return _error("Erreur lors de la suppression de la conversation", 500)


@app.route("/admin/reply", methods=["POST"])
def admin_reply():
    """Post an administrator message into a conversation.

    Request Body:
        {"sessionId": "CHAT-...", "message": "...", "adminName": "CPE"}
    """
    try:
        data = request.get_json(silent=True) or {}
        session_id = data.get("sessionId")
        message = data.get("message")
        if not session_id or not message:
            return _error("Session ID et message requis", 400)

        if not conversations.add_admin_reply(session_id, message, data.get("adminName")):
            return _error("Conversation non trouvée", 404)

        return jsonify({"success": True, "message": "Message envoyé"}), 200

    except Exception as e:
        logger.error(
            "ADMIN_REPLY_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return _error("Erreur lors de l'envoi", 500)


@app.route("/user/messages/<session_id>", methods=["GET"])
def poll_messages(session_id: str):
    """Messages of a conversation, optionally only those after ?since=."""
    try:
        since = request.args.get("since")
        return jsonify({
            "success": True,
            "messages": conversations.messages(session_id, since=since),
        }), 200

    except Exception as e:
        logger.error(
            "POLL_MESSAGES_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return _error("Erreur serveur", 500)


@app.route("/user/check-admin-reply/<session_id>", methods=["GET"])
def check_admin_reply(session_id: str):
    try:
        return jsonify({
            "success": True,
            "hasAdminReply": conversations.has_admin_reply(session_id),
        }), 200

    except Exception as e:
        logger.error(
            "CHECK_ADMIN_REPLY_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return _error("Erreur serveur", 500)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", "8081"))
    app.run(host="0.0.0.0", port=port)
