"""Review event publisher for the abuse service.

Reports whose trust assessment needs a human look are published to a
Kinesis stream consumed by the administrators' review queue. Publishing
never blocks or fails the scoring path.
"""
import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

import boto3

from speakfree.shared.models import TrustAssessment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewEvent:
    """Immutable review request for one report."""
    event_id: str
    report_id: str
    school_id: Optional[int] = None
    event_type: str = "abuse.review.requested"
    trust_score: int = 0
    severity: str = "normal"
    is_blocked: bool = False
    issue_types: List[str] = field(default_factory=list)
    submitter_hash: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def from_assessment(
        cls,
        report_id: str,
        assessment: TrustAssessment,
        school_id: Optional[int] = None,
        submitter_hash: Optional[str] = None,
    ) -> "ReviewEvent":
        return cls(
            event_id=f"evt_{uuid.uuid4().hex[:12]}",
            report_id=report_id,
            school_id=school_id,
            trust_score=assessment.score,
            severity=assessment.severity.value,
            is_blocked=assessment.is_blocked,
            issue_types=assessment.issue_types,
            submitter_hash=submitter_hash,
        )

    def to_kinesis_payload(self) -> dict:
        """Convert to Kinesis record payload."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "timestamp": self.timestamp.isoformat() + "Z",
            "source": "abuse-service",
            "data": {
                "report_id": self.report_id,
                "school_id": self.school_id,
                "trust_score": self.trust_score,
                "severity": self.severity,
                "is_blocked": self.is_blocked,
                "issue_types": self.issue_types,
                "submitter_hash": self.submitter_hash,
            }
        }


class ReviewEventPublisher:
    """Publishes review events to a Kinesis stream.

    Failure Handling:
        - Publishing failure does NOT affect the stored trust score
        - Failures are logged at CRITICAL level with the full payload so the
          review can be queued manually
    """

    def __init__(
        self,
        stream_name: str = "speakfree-review-events",
        enabled: bool = True,
        region: Optional[str] = None,
    ):
        """Initialize publisher.

        Args:
            stream_name: Kinesis stream name
            enabled: Whether publishing is enabled (disable for local dev)
            region: AWS region (defaults to AWS_REGION env var)
        """
        self.stream_name = stream_name
        self.enabled = enabled
        self.region = region or os.getenv("AWS_REGION", "eu-west-3")
        self._kinesis_client = None

        logger.info(
            "REVIEW_PUBLISHER_INITIALIZED",
            extra={
                "stream_name": stream_name,
                "enabled": enabled,
                "region": self.region,
            }
        )

    @property
    def kinesis_client(self):
        """Lazy initialization of Kinesis client."""
        if self._kinesis_client is None and self.enabled:
            try:
                self._kinesis_client = boto3.client(
                    "kinesis",
                    region_name=self.region,
                )
            except Exception as e:
                logger.error(
                    "KINESIS_CLIENT_INIT_FAILED",
                    extra={"error": str(e)}
                )
        return self._kinesis_client

    def publish(self, event: ReviewEvent) -> bool:
        """Publish one review event.

        Returns:
            True if published successfully, False otherwise
        """
        if not self.enabled:
            logger.info(
                "REVIEW_PUBLISH_SKIPPED",
                extra={
                    "report_id": event.report_id,
                    "reason": "publishing_disabled",
                }
            )
            return False

        payload = event.to_kinesis_payload()

        try:
            if self.kinesis_client is None:
                logger.critical(
                    "REVIEW_EVENT_FALLBACK_LOG",
                    extra={
                        "event_id": event.event_id,
                        "payload": json.dumps(payload),
                        "reason": "kinesis_client_unavailable",
                        "action": "MANUAL_REVIEW_REQUIRED",
                    }
                )
                return False

            response = self.kinesis_client.put_record(
                StreamName=self.stream_name,
                Data=json.dumps(payload),
                PartitionKey=str(event.school_id or event.report_id),
            )

            logger.info(
                "REVIEW_EVENT_PUBLISHED",
                extra={
                    "event_id": event.event_id,
                    "report_id": event.report_id,
                    "severity": event.severity,
                    "shard_id": response.get("ShardId"),
                    "sequence_number": response.get("SequenceNumber"),
                }
            )
            return True

        except Exception as e:
            logger.critical(
                "REVIEW_EVENT_PUBLISH_FAILED",
                extra={
                    "event_id": event.event_id,
                    "report_id": event.report_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "action": "MANUAL_REVIEW_REQUIRED",
                    "payload": json.dumps(payload),
                }
            )
            return False
