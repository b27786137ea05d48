"""Tests for the detached scoring queue."""
import pytest
from unittest.mock import MagicMock

from speakfree.shared.models import (
    ReportDraft,
    Severity,
    SubmissionMetadata,
    TrustAssessment,
    TrustIssue,
)
from speakfree.shared.utils import configure_pii_salt
from speakfree.services.abuse_service.background import ScoringQueue
from speakfree.services.abuse_service.review_publisher import ReviewEvent


@pytest.fixture(autouse=True)
def setup_pii_salt():
    configure_pii_salt("test_salt_that_is_at_least_32_characters_long")


@pytest.fixture
def reports():
    return MagicMock()


@pytest.fixture
def publisher():
    return MagicMock()


def make_queue(assessment, reports, publisher):
    scorer = MagicMock()
    scorer.assess.return_value = assessment
    return ScoringQueue(scorer, reports=reports, publisher=publisher, max_workers=1)


DRAFT = ReportDraft(report_id="SF-1-ABCDE", school_id=3, message="Il me frappe à la cantine")


class TestScoringQueue:

    def test_clean_report_updates_trust_only(self, reports, publisher):
        assessment = TrustAssessment(score=75, severity=Severity.NORMAL)
        queue = make_queue(assessment, reports, publisher)

        result = queue.submit(DRAFT, SubmissionMetadata(ip_address="1.2.3.4")).result(timeout=5)
        queue.shutdown()

        assert result is assessment
        reports.update_trust.assert_called_once_with("SF-1-ABCDE", 75, None)
        publisher.publish.assert_not_called()
        assert queue.completed_count == 1
        assert queue.failed_count == 0

    def test_flagged_report_publishes_review_event(self, reports, publisher):
        issue = TrustIssue(type="short_description", message="court", severity=Severity.WARNING)
        assessment = TrustAssessment(score=65, severity=Severity.WARNING, issues=(issue,))
        queue = make_queue(assessment, reports, publisher)

        queue.submit(DRAFT).result(timeout=5)
        queue.shutdown()

        reports.update_trust.assert_called_once_with("SF-1-ABCDE", 65, [issue.to_dict()])
        event = publisher.publish.call_args.args[0]
        assert isinstance(event, ReviewEvent)
        assert event.report_id == "SF-1-ABCDE"
        assert event.issue_types == ["short_description"]

    def test_failure_is_counted_not_raised(self, reports, publisher):
        queue = make_queue(None, reports, publisher)
        queue.scorer.assess.side_effect = RuntimeError("boom")

        result = queue.submit(DRAFT).result(timeout=5)
        queue.shutdown()

        assert result is None
        assert queue.failed_count == 1
        assert queue.completed_count == 0

    def test_update_failure_is_counted(self, reports, publisher):
        assessment = TrustAssessment(score=75, severity=Severity.NORMAL)
        reports.update_trust.side_effect = Exception("statement timeout")
        queue = make_queue(assessment, reports, publisher)

        assert queue.submit(DRAFT).result(timeout=5) is None
        queue.shutdown()

        assert queue.failed_count == 1
