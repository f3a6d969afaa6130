"""
Modèle SQLAlchemy pour les présences enregistrées au check-in QR.

Une présence par couple (inscription, session) : un second scan sur un couple
déjà présent sert de check-out, un troisième est refusé.
"""

import uuid
from sqlalchemy import Boolean, Column, DateTime, String, UniqueConstraint, func

from eventhub.database import Base


class Attendance(Base):
    __tablename__ = "attendances"
    __table_args__ = (
        UniqueConstraint("enrollment_id", "session_id", name="uq_attendance_enrollment_session"),
    )

    id = Column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    enrollment_id = Column(String(64), nullable=False, index=True)
    session_id = Column(String(64), nullable=False, index=True)
    event_id = Column(String(64), nullable=True, index=True)  # facilite la suppression en cascade

    checked_in_at = Column(DateTime, nullable=False)
    checked_out_at = Column(DateTime, nullable=True)
    is_valid = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, server_default=func.now())
