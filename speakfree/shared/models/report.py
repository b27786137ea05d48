"""Report, school and intake vocabulary models.

Reports themselves are owned by the reporting backend; these models carry
only the fields the anti-abuse and intake cores read or write.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class Urgency(Enum):
    """Urgency levels, as stored on reports."""
    CRITICAL = "critique"
    HIGH = "eleve"
    MEDIUM = "moyen"
    LOW = "faible"


class IntakeCategory(Enum):
    """Categories recognised by the guided intake conversation."""
    HARASSMENT = "harcelement"
    VIOLENCE = "violence"
    DRUGS = "drogue"
    THEFT = "vol"
    WEAPON = "arme"
    CYBERHARASSMENT = "cyberharcelement"
    DISCRIMINATION = "discrimination"
    ADULT = "adulte"
    SEXUAL_ASSAULT = "agression_sexuelle"


class ReportCategory(Enum):
    """Categories accepted by the reports table."""
    HARASSMENT = "harcelement"
    VIOLENCE = "violence"
    FRAUD = "fraude"
    DISCRIMINATION = "discrimination"
    ABUSE = "abus"
    DRUGS = "drogue"
    ADMINISTRATION = "administration"
    INFRASTRUCTURE = "infrastructure"
    OTHER = "autre"


@dataclass(frozen=True)
class School:
    """Organization unit a report belongs to."""
    id: int
    school_code: str
    name: str


@dataclass(frozen=True)
class ReportDraft:
    """The parts of a submitted report the trust scorer looks at."""
    report_id: Optional[str]
    school_id: Optional[int]
    message: str = ""
    category: Optional[str] = None
    urgency: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.report_id,
            "schoolId": self.school_id,
            "category": self.category,
            "urgency": self.urgency,
            "message": self.message,
        }


@dataclass(frozen=True)
class SubmissionMetadata:
    """Request-level context of a submission."""
    ip_address: Optional[str] = None
    has_attachments: bool = False
    is_anonymous: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ipAddress": self.ip_address,
            "hasAttachments": self.has_attachments,
            "isAnonymous": self.is_anonymous,
        }


@dataclass(frozen=True)
class HistoricalReport:
    """A previously stored report, as returned by similarity lookups."""
    id: str
    message: str
    created_at: datetime


@dataclass(frozen=True)
class NewReport:
    """A fully normalised report ready for insertion."""
    tracking_code: str
    access_code: str
    school_id: int
    category: str
    urgency: str
    title: str
    message: str
    location: str
    witnesses: str
    is_anonymous: bool
    user_type: str = "eleve"
    contact_info: Optional[Dict[str, str]] = None
    face_photo: Optional[str] = None
    ip_address: Optional[str] = None
    status: str = "new"
    created_at: datetime = field(default_factory=datetime.utcnow)
