"""Moderation Service HTTP handler - discussion message gate.

Every discussion message passes through /check before it is posted.
Message text is never logged; only its audit fingerprint is.
"""
import logging
import os

from flask import Flask, request, jsonify

from speakfree.shared.database import get_connection_manager
from speakfree.shared.utils import configure_pii_salt
from .moderation_repository import ModerationLogRepository
from .moderator import ModerationGate

logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)

# Configure PII salt from environment
pii_salt = os.getenv("PII_HASH_SALT", "default_dev_salt_change_in_production_32chars")
configure_pii_salt(pii_salt)

connection_manager = get_connection_manager()
moderation_log = ModerationLogRepository(connection_manager)
gate = ModerationGate(moderation_log=moderation_log)


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "moderation-service",
    }), 200


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check."""
    if gate is None:
        return jsonify({"status": "not_ready"}), 503
    return jsonify({"status": "ready"}), 200


@app.route("/check", methods=["POST"])
def check_message():
    """Allow or block a discussion message.

    Request Body:
        {"message": "..."}

    Response (blocked):
        {"allowed": false, "reason": "...", "score": 18, "contentType": "violence"}

    Response (allowed):
        {"allowed": true, "score": 0, "warning": null}
    """
    try:
        data = request.get_json(silent=True) or {}
        verdict = gate.moderate(data.get("message"))
        return jsonify(verdict.to_dict()), 200

    except Exception as e:
        logger.error(
            "MODERATION_CHECK_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return jsonify({"success": False, "message": "Erreur interne du serveur"}), 500


@app.route("/analyze", methods=["POST"])
def analyze_text():
    """Score and classify a text without logging it."""
    try:
        data = request.get_json(silent=True) or {}
        return jsonify(gate.analyze(data.get("text"))), 200

    except Exception as e:
        logger.error(
            "MODERATION_ANALYZE_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return jsonify({"success": False, "message": "Erreur interne du serveur"}), 500


@app.route("/stats", methods=["GET"])
def moderation_stats():
    """Moderation statistics for administrators."""
    try:
        return jsonify({"success": True, "stats": moderation_log.stats()}), 200

    except Exception as e:
        logger.error(
            "MODERATION_STATS_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return jsonify({"success": False, "message": "Erreur récupération statistiques"}), 500


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", "8083"))
    app.run(host="0.0.0.0", port=port)
