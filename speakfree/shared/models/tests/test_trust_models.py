"""Tests for trust and moderation domain models."""
import pytest

from speakfree.shared.models import (
    ContentType,
    ModerationVerdict,
    Severity,
    TrustAssessment,
    TrustIssue,
)


class TestSeverity:

    def test_escalate_goes_up(self):
        assert Severity.NORMAL.escalate(Severity.WARNING) == Severity.WARNING
        assert Severity.WARNING.escalate(Severity.CRITICAL) == Severity.CRITICAL

    def test_escalate_never_regresses(self):
        assert Severity.CRITICAL.escalate(Severity.WARNING) == Severity.CRITICAL
        assert Severity.WARNING.escalate(Severity.NORMAL) == Severity.WARNING


class TestTrustAssessment:

    def test_score_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            TrustAssessment(score=101, severity=Severity.NORMAL)
        with pytest.raises(ValueError):
            TrustAssessment(score=-1, severity=Severity.NORMAL)

    def test_clean_assessment(self):
        assessment = TrustAssessment(score=75, severity=Severity.NORMAL)

        assert assessment.is_blocked is False
        assert assessment.needs_review is False
        assert assessment.abuse_flags() is None

    def test_blocked_below_low_threshold(self):
        assessment = TrustAssessment(score=24, severity=Severity.CRITICAL)

        assert assessment.is_blocked is True
        assert assessment.needs_review is True

    def test_review_when_severity_raised(self):
        assessment = TrustAssessment(score=65, severity=Severity.WARNING)

        assert assessment.is_blocked is False
        assert assessment.needs_review is True

    def test_review_below_medium_threshold(self):
        assessment = TrustAssessment(score=49, severity=Severity.NORMAL)

        assert assessment.needs_review is True

    def test_is_immutable(self):
        assessment = TrustAssessment(score=75, severity=Severity.NORMAL)

        with pytest.raises(Exception):  # FrozenInstanceError
            assessment.score = 10

    def test_to_dict(self):
        issue = TrustIssue(
            type="all_caps",
            message="Message entièrement en majuscules",
            severity=Severity.WARNING,
        )
        assessment = TrustAssessment(
            score=65, severity=Severity.WARNING, issues=(issue,)
        )

        data = assessment.to_dict()

        assert data["trust_score"] == 65
        assert data["severity"] == "warning"
        assert data["issues"] == [{
            "type": "all_caps",
            "message": "Message entièrement en majuscules",
            "severity": "warning",
        }]
        assert data["needs_review"] is True


class TestModerationVerdict:

    def test_negative_score_rejected(self):
        with pytest.raises(ValueError):
            ModerationVerdict(allowed=True, score=-1)

    def test_blocked_to_dict_includes_content_type(self):
        verdict = ModerationVerdict(
            allowed=False,
            score=18,
            content_type=ContentType.VIOLENCE,
            reason="Message bloqué",
        )

        data = verdict.to_dict()

        assert data["allowed"] is False
        assert data["contentType"] == "violence"
        assert verdict.action == "blocked"

    def test_empty_rejection_has_no_score(self):
        verdict = ModerationVerdict(allowed=False, reason="vide")

        assert "score" not in verdict.to_dict()
