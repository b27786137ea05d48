"""Tests for ReviewEventPublisher."""
import json
import pytest
from unittest.mock import patch, MagicMock

from speakfree.shared.models import Severity, TrustAssessment, TrustIssue
from speakfree.services.abuse_service.review_publisher import (
    ReviewEvent,
    ReviewEventPublisher,
)


@pytest.fixture
def event():
    assessment = TrustAssessment(
        score=20,
        severity=Severity.CRITICAL,
        issues=(TrustIssue(type="ip_frequency", message="IP", severity=Severity.CRITICAL),),
    )
    return ReviewEvent.from_assessment("SF-1-ABCDE", assessment, school_id=3)


class TestReviewEvent:

    def test_from_assessment(self, event):
        assert event.event_id.startswith("evt_")
        assert event.trust_score == 20
        assert event.severity == "critical"
        assert event.is_blocked is True
        assert event.issue_types == ["ip_frequency"]

    def test_payload(self, event):
        payload = event.to_kinesis_payload()

        assert payload["event_type"] == "abuse.review.requested"
        assert payload["source"] == "abuse-service"
        assert payload["timestamp"].endswith("Z")
        assert payload["data"]["report_id"] == "SF-1-ABCDE"
        assert payload["data"]["school_id"] == 3

    def test_event_is_immutable(self, event):
        with pytest.raises(Exception):  # FrozenInstanceError
            event.severity = "normal"


class TestReviewEventPublisher:

    def test_disabled_publisher_skips(self, event):
        publisher = ReviewEventPublisher(enabled=False)

        assert publisher.publish(event) is False
        assert publisher.kinesis_client is None

    @patch("speakfree.services.abuse_service.review_publisher.boto3.client")
    def test_publish_success(self, mock_client_factory, event):
        mock_client = MagicMock()
        mock_client.put_record.return_value = {"ShardId": "shard-0", "SequenceNumber": "1"}
        mock_client_factory.return_value = mock_client
        publisher = ReviewEventPublisher(stream_name="test-stream", region="eu-west-3")

        assert publisher.publish(event) is True

        kwargs = mock_client.put_record.call_args.kwargs
        assert kwargs["StreamName"] == "test-stream"
        assert kwargs["PartitionKey"] == "3"
        assert json.loads(kwargs["Data"])["data"]["report_id"] == "SF-1-ABCDE"
        mock_client_factory.assert_called_once_with("kinesis", region_name="eu-west-3")

    @patch("speakfree.services.abuse_service.review_publisher.boto3.client")
    def test_publish_failure_returns_false(self, mock_client_factory, event):
        mock_client = MagicMock()
        mock_client.put_record.side_effect = Exception("throttled")
        mock_client_factory.return_value = mock_client

        assert ReviewEventPublisher().publish(event) is False

    @patch("speakfree.services.abuse_service.review_publisher.boto3.client")
    def test_client_unavailable_falls_back_to_log(self, mock_client_factory, event):
        mock_client_factory.side_effect = Exception("no credentials")

        assert ReviewEventPublisher().publish(event) is False
