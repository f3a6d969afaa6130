"""
Schémas Pydantic pour les inscriptions.
Endpoints : GET /enrollments?event_id=, POST /enrollments, POST /enrollments/{id}/cancel
"""

from typing import Literal, Optional

from pydantic import BaseModel, field_validator

EnrollmentStatus = Literal["pending", "confirmed", "waitlist", "cancelled"]
VALID_ENROLLMENT_STATUSES = {"pending", "confirmed", "waitlist", "cancelled"}


def normalize_enrollment_status(raw: Optional[str]) -> str:
    """Le backend écrit parfois « canceled » ; absence de statut = pending."""
    status = (raw or "pending").strip().lower()
    if status == "canceled":
        return "cancelled"
    return status


class EnrollmentCreate(BaseModel):
    event_id: int
    student_id: int
    idempotent: bool = False
    reactivate_if_canceled: bool = False


class ApiEnrollment(BaseModel):
    """Inscription telle que renvoyée par le backend."""
    id: int
    student_id: int
    event_id: int
    status: str = "pending"
    enrolled_at: Optional[str] = None
    qr_code: Optional[str] = None

    @field_validator("status")
    @classmethod
    def known_status(cls, v: str) -> str:
        status = normalize_enrollment_status(v)
        if status not in VALID_ENROLLMENT_STATUSES:
            raise ValueError(f"Statut d'inscription inconnu : {v}")
        return status


class Enrollment(BaseModel):
    """Inscription d'un étudiant à un événement (références faibles par id)."""
    id: str
    student_id: str
    event_id: str
    status: EnrollmentStatus = "pending"
    enrolled_at: str = ""
    qr_code: str = ""

    @property
    def is_active(self) -> bool:
        return self.status != "cancelled"
