"""
Schémas Pydantic pour les certificats et l'aperçu d'éligibilité.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

from eventhub.schemas.enrollment import Enrollment
from eventhub.schemas.event import Event
from eventhub.schemas.student import StudentResponse

CertificateStatus = Literal["issued", "revoked"]


class CertificateRecord(BaseModel):
    id: str
    enrollment_id: str
    event_id: Optional[str] = None
    issued_at: datetime
    verification_code: str
    status: CertificateStatus = "issued"
    pdf_url: Optional[str] = None
    revoked_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class EligibilityRow(BaseModel):
    """Ligne de l'aperçu : une inscription confirmée et son éligibilité."""
    enrollment: Enrollment
    student: StudentResponse
    event: Event
    attendance_rate: int
    eligible: bool
    has_certificate: bool
    certificate: Optional[CertificateRecord] = None


class BatchResult(BaseModel):
    """Rapport de génération en lot. generated_count == 0 n'est pas une erreur."""
    event_id: str
    generated_count: int
    certificates: List[CertificateRecord]


class CertificateSummary(BaseModel):
    total: int
    issued: int
    events_with_certificates: int
    available_events: int
    certification_rate: int
