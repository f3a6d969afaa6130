"""
Schémas Pydantic pour les présences (check-in QR) et leurs statistiques.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class AttendanceRecord(BaseModel):
    id: str
    enrollment_id: str
    session_id: str
    event_id: Optional[str] = None
    checked_in_at: datetime
    checked_out_at: Optional[datetime] = None
    is_valid: bool = True

    model_config = {"from_attributes": True}


class CheckInResult(BaseModel):
    """Résultat d'un scan : premier passage = check-in, second = check-out."""
    action: Literal["check_in", "check_out"]
    attendance: AttendanceRecord
    student_name: Optional[str] = None


class AttendanceStats(BaseModel):
    """Statistiques de présence d'un événement (inscriptions confirmées uniquement)."""
    enrolled: int
    total_attendances: int
    attendance_rate: int
