"""
Agrégation des présences et check-in par QR code.

Fonctions pures (aucune E/S) :
- attendance_percentage : taux de présences valides d'une inscription
- session_attendance_count : nombre de présences d'une session, SANS filtre de validité
  (asymétrie volontairement conservée avec l'éligibilité, qui filtre sur is_valid)
- event_attendance_rate : présences totales / (inscriptions confirmées × sessions)

Arrondi « half-up » en arithmétique entière : 74,5 % → 75 %.

Check-in : au plus une présence par couple (inscription, session). Le premier scan
crée la présence, le second enregistre le check-out, le troisième est refusé.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session as DbSession

from eventhub.exceptions import NotFoundError, SelectionRequiredError, ValidationError
from eventhub.models.attendance import Attendance
from eventhub.schemas.attendance import AttendanceRecord, AttendanceStats, CheckInResult
from eventhub.schemas.enrollment import Enrollment
from eventhub.schemas.event import Event
from eventhub.schemas.student import StudentResponse

logger = logging.getLogger(__name__)


def percent(numerator: int, denominator: int) -> int:
    """round(100 * numerator / denominator) arrondi au demi supérieur ; 0 si denominator == 0."""
    if denominator <= 0:
        return 0
    return (200 * numerator + denominator) // (2 * denominator)


# ============================================================
# Agrégats purs
# ============================================================

def attendance_percentage(records: Sequence) -> int:
    """Pourcentage de présences valides (0 pour une liste vide)."""
    if not records:
        return 0
    valid = sum(1 for r in records if r.is_valid)
    return percent(valid, len(records))


def session_attendance_count(attendances: Iterable, session_id: str) -> int:
    return sum(1 for a in attendances if a.session_id == str(session_id))


def enrollment_attendances(attendances: Iterable, enrollment_id: str) -> List:
    return [a for a in attendances if a.enrollment_id == str(enrollment_id)]


def event_attendance_rate(
    enrollments: Iterable[Enrollment],
    attendances: Iterable,
    session_count: int,
) -> int:
    """
    Taux de présence d'un événement.
    Seules les présences des inscriptions confirmées sont comptées.
    """
    confirmed_ids = {e.id for e in enrollments if e.status == "confirmed"}
    total = sum(1 for a in attendances if a.enrollment_id in confirmed_ids)
    return percent(total, len(confirmed_ids) * session_count)


def attendance_stats(event: Event, enrollments: Iterable[Enrollment], attendances: Iterable) -> AttendanceStats:
    event_enrollments = [e for e in enrollments if e.event_id == event.id and e.status == "confirmed"]
    confirmed_ids = {e.id for e in event_enrollments}
    event_attendances = [a for a in attendances if a.enrollment_id in confirmed_ids]
    return AttendanceStats(
        enrolled=len(event_enrollments),
        total_attendances=len(event_attendances),
        attendance_rate=event_attendance_rate(event_enrollments, event_attendances, len(event.sessions)),
    )


# ============================================================
# Check-in QR (miroir local)
# ============================================================

def find_enrollment_by_qr(enrollments: Iterable[Enrollment], qr_code: str, event_id: str) -> Enrollment:
    """Seule une inscription confirmée de l'événement sélectionné est acceptée."""
    code = qr_code.strip()
    for enrollment in enrollments:
        if enrollment.qr_code == code and enrollment.event_id == str(event_id) and enrollment.status == "confirmed":
            return enrollment
    raise NotFoundError("QR Code invalide ou inscription non confirmée.")


def scan_qr_code(
    db: DbSession,
    event: Optional[Event],
    session_id: Optional[str],
    qr_code: str,
    enrollments: Iterable[Enrollment],
    students: Iterable[StudentResponse] = (),
    now: Optional[datetime] = None,
) -> CheckInResult:
    """
    Traite un scan de QR code pour une session d'un événement.

    1. Résout l'inscription confirmée correspondant au QR code
    2. Aucune présence pour (inscription, session) → check-in
    3. Présence sans check-out → check-out
    4. Présence déjà clôturée → ValidationError
    """
    if event is None or not session_id or not (qr_code or "").strip():
        raise SelectionRequiredError("qr_code", "Sélectionnez un événement, une session et saisissez le QR code.")
    if not any(s.id == str(session_id) for s in event.sessions):
        raise NotFoundError(f"Session {session_id} introuvable pour l'événement {event.id}.")

    enrollment = find_enrollment_by_qr(enrollments, qr_code, event.id)
    now = now or datetime.now(timezone.utc)
    student_name = next((s.name for s in students if str(s.id) == enrollment.student_id), None)

    existing = db.execute(
        select(Attendance).where(
            Attendance.enrollment_id == enrollment.id,
            Attendance.session_id == str(session_id),
        )
    ).scalar()

    if existing is not None:
        if existing.checked_out_at is not None:
            raise ValidationError(
                {"qr_code": "L'étudiant a déjà effectué le check-in et le check-out pour cette session."}
            )
        existing.checked_out_at = now
        db.commit()
        db.refresh(existing)
        logger.info("Check-out : inscription %s, session %s", enrollment.id, session_id)
        return CheckInResult(
            action="check_out",
            attendance=AttendanceRecord.model_validate(existing),
            student_name=student_name,
        )

    attendance = Attendance(
        enrollment_id=enrollment.id,
        session_id=str(session_id),
        event_id=event.id,
        checked_in_at=now,
        is_valid=True,
    )
    db.add(attendance)
    db.commit()
    db.refresh(attendance)
    logger.info("Check-in : inscription %s, session %s (%s)", enrollment.id, session_id, student_name or "?")
    return CheckInResult(
        action="check_in",
        attendance=AttendanceRecord.model_validate(attendance),
        student_name=student_name,
    )


def list_attendances(db: DbSession, event_id: Optional[str] = None) -> List[AttendanceRecord]:
    query = select(Attendance).order_by(Attendance.checked_in_at)
    if event_id is not None:
        query = query.where(Attendance.event_id == str(event_id))
    return [AttendanceRecord.model_validate(a) for a in db.execute(query).scalars().all()]


def set_attendance_validity(db: DbSession, attendance_id: str, is_valid: bool) -> AttendanceRecord:
    """Invalide (ou revalide) une présence, par exemple un check-in effectué par erreur."""
    attendance = db.get(Attendance, attendance_id)
    if attendance is None:
        raise NotFoundError(f"Présence {attendance_id} introuvable.")
    attendance.is_valid = is_valid
    db.commit()
    db.refresh(attendance)
    return AttendanceRecord.model_validate(attendance)


def delete_attendances_for_enrollments(db: DbSession, enrollment_ids: Iterable[str]) -> int:
    ids = [str(i) for i in enrollment_ids]
    if not ids:
        return 0
    result = db.execute(delete(Attendance).where(Attendance.enrollment_id.in_(ids)))
    db.commit()
    return result.rowcount or 0


def delete_attendances_for_event(db: DbSession, event_id: str) -> int:
    result = db.execute(delete(Attendance).where(Attendance.event_id == str(event_id)))
    db.commit()
    return result.rowcount or 0
