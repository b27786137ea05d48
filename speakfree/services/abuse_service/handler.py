"""Abuse Service HTTP handler - trust scoring and abuse administration.

The reporting backend calls /assess/async right after storing a report;
platform administrators use the stats and review endpoints.

Submitter IP addresses are never logged raw - use hash_pii().
"""
import logging
import os
from datetime import datetime, timedelta

from flask import Flask, request, jsonify

from speakfree.shared.database import get_connection_manager
from speakfree.shared.models import ReportDraft, SubmissionMetadata
from speakfree.shared.utils import hash_pii, configure_pii_salt
from .abuse_log_repository import AbuseLogRepository
from .background import ScoringQueue
from .config import DetectionRules
from .frequency import FrequencyAnalyzer
from .report_repository import ReportRepository
from .review_publisher import ReviewEventPublisher
from .scorer import TrustScorer

logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)

# Configure PII salt from environment
pii_salt = os.getenv("PII_HASH_SALT", "default_dev_salt_change_in_production_32chars")
configure_pii_salt(pii_salt)

# Wire repositories, scorer and background queue
connection_manager = get_connection_manager()
reports = ReportRepository(connection_manager)
abuse_logs = AbuseLogRepository(connection_manager)
rules = DetectionRules.from_env()
scorer = TrustScorer(
    frequency=FrequencyAnalyzer(reports, rules=rules),
    abuse_log=abuse_logs,
    rules=rules,
)
review_publisher = ReviewEventPublisher(
    stream_name=os.getenv("KINESIS_STREAM_NAME", "speakfree-review-events"),
    enabled=os.getenv("REVIEW_PUBLISHING_ENABLED", "false").lower() == "true",
)
scoring_queue = ScoringQueue(
    scorer=scorer,
    reports=reports,
    publisher=review_publisher,
    max_workers=int(os.getenv("SCORING_WORKERS", "2")),
)


def _parse_submission(data: dict):
    """Build the scorer inputs from a request body."""
    draft = ReportDraft(
        report_id=data.get("report_id"),
        school_id=data.get("school_id"),
        message=data.get("message") or "",
        category=data.get("category"),
        urgency=data.get("urgency"),
    )
    metadata = SubmissionMetadata(
        ip_address=data.get("ip_address") or request.remote_addr,
        has_attachments=bool(data.get("has_attachments", False)),
        is_anonymous=bool(data.get("is_anonymous", True)),
    )
    return draft, metadata


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "abuse-service",
    }), 200


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check - verifies database connectivity."""
    db_health = connection_manager.health_check()
    if not db_health.get("healthy"):
        return jsonify({"status": "not_ready", "database": db_health.get("status")}), 503
    return jsonify({"status": "ready"}), 200


@app.route("/assess", methods=["POST"])
def assess():
    """Assess a report synchronously.

    Request Body:
        {
            "report_id": "SF-1700000000000-AB12C",
            "school_id": 3,
            "message": "...",
            "ip_address": "203.0.113.4"
        }

    Response:
        TrustAssessment.to_dict()
    """
    try:
        data = request.get_json(silent=True)
        if not data:
            return jsonify({"error": "Request body required"}), 400

        draft, metadata = _parse_submission(data)
        assessment = scorer.assess(draft, metadata)

        return jsonify(assessment.to_dict()), 200

    except Exception as e:
        logger.error(
            "ASSESS_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return jsonify({"error": "Assessment failed"}), 500


@app.route("/assess/async", methods=["POST"])
def assess_async():
    """Queue a stored report for background scoring.

    Returns 202 immediately; the score is written back onto the report.
    """
    try:
        data = request.get_json(silent=True)
        if not data:
            return jsonify({"error": "Request body required"}), 400
        if not data.get("report_id"):
            return jsonify({"error": "Missing report_id"}), 400

        draft, metadata = _parse_submission(data)
        scoring_queue.submit(draft, metadata)

        logger.info(
            "ASSESSMENT_ACCEPTED",
            extra={
                "report_id": draft.report_id,
                "submitter_hash": hash_pii(metadata.ip_address) if metadata.ip_address else None,
            }
        )
        return jsonify({"accepted": True, "report_id": draft.report_id}), 202

    except Exception as e:
        logger.error(
            "ASSESS_ASYNC_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return jsonify({"error": "Failed to queue assessment"}), 500


@app.route("/stats", methods=["GET"])
def abuse_stats():
    """Abuse statistics over the last N days (default 7)."""
    try:
        days = request.args.get("days", 7, type=int)
        since = datetime.utcnow() - timedelta(days=days)

        return jsonify({
            "success": True,
            "abuseStats": abuse_logs.severity_stats(since),
            "reportStats": reports.trust_distribution(since),
            "scoring": {
                "completed": scoring_queue.completed_count,
                "failed": scoring_queue.failed_count,
            },
        }), 200

    except Exception as e:
        logger.error(
            "ABUSE_STATS_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return jsonify({"success": False, "message": "Erreur interne du serveur"}), 500


@app.route("/suspicious-reports", methods=["GET"])
def suspicious_reports():
    """Latest warning/critical detections with their report."""
    try:
        limit = request.args.get("limit", 50, type=int)
        rows = abuse_logs.suspicious_reports(limit=limit)
        return jsonify({"success": True, "reports": rows, "count": len(rows)}), 200

    except Exception as e:
        logger.error(
            "SUSPICIOUS_REPORTS_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return jsonify({"success": False, "message": "Erreur interne du serveur"}), 500


@app.route("/abuse-logs/<int:log_id>/review", methods=["POST"])
def review_abuse_log(log_id: int):
    """Mark a detection as reviewed.

    Request Body:
        {"reviewer_id": "admin_1"}
    """
    try:
        data = request.get_json(silent=True) or {}
        reviewer_id = data.get("reviewer_id")
        if not reviewer_id:
            return jsonify({"success": False, "message": "Missing reviewer_id"}), 400

        if not abuse_logs.mark_reviewed(log_id, str(reviewer_id)):
            return jsonify({"success": False, "message": "Log introuvable"}), 404

        return jsonify({"success": True, "message": "Révision enregistrée"}), 200

    except Exception as e:
        logger.error(
            "ABUSE_REVIEW_ERROR",
            extra={"log_id": log_id, "error": str(e), "error_type": type(e).__name__}
        )
        return jsonify({"success": False, "message": "Erreur interne du serveur"}), 500


@app.route("/suspicious-submitters", methods=["GET"])
def suspicious_submitters():
    """Submitter keys with many reports or a low average trust (30 days)."""
    try:
        days = request.args.get("days", 30, type=int)
        since = datetime.utcnow() - timedelta(days=days)
        rows = reports.suspicious_submitters(since)
        return jsonify({"success": True, "submitters": rows}), 200

    except Exception as e:
        logger.error(
            "SUSPICIOUS_SUBMITTERS_ERROR",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return jsonify({"success": False, "message": "Erreur interne du serveur"}), 500


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", "8082"))
    app.run(host="0.0.0.0", port=port)
