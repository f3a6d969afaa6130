"""
Éligibilité et émission des certificats.

Cycle de vie par inscription : NonÉligible → Éligible → Émis (→ Révoqué → Éligible).
Tant qu'un certificat « issued » existe pour l'inscription, la génération est un
no-op (retour None), jamais une erreur : la génération en lot est donc idempotente.

Limite connue : le contrôle « certificat déjà émis » est une lecture suivie d'une
écriture. Deux générations concurrentes pour le même événement peuvent toutes deux
passer le contrôle ; seule une contrainte d'unicité côté backend l'empêche.
"""

import logging
import secrets
import string
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session as DbSession

from eventhub.config import settings
from eventhub.exceptions import NotFoundError, SelectionRequiredError, ValidationError
from eventhub.models.attendance import Attendance
from eventhub.models.certificate import Certificate
from eventhub.schemas.attendance import AttendanceRecord
from eventhub.schemas.certificate import BatchResult, CertificateRecord, CertificateSummary, EligibilityRow
from eventhub.schemas.enrollment import Enrollment
from eventhub.schemas.event import Event
from eventhub.schemas.student import StudentResponse
from eventhub.services.attendance_service import attendance_percentage, enrollment_attendances, percent

logger = logging.getLogger(__name__)

VERIFICATION_ALPHABET = string.ascii_uppercase + string.digits
VERIFICATION_CODE_LENGTH = 8


def is_eligible(attendance_pct: int, min_required: int = settings.DEFAULT_MIN_PRESENCE_PCT) -> bool:
    """Inégalité large : atteindre exactement le seuil suffit."""
    return attendance_pct >= min_required


def generate_verification_code(taken: Iterable[str] = ()) -> str:
    """Code opaque de 8 caractères [A-Z0-9], distinct de ceux déjà attribués."""
    taken = set(taken)
    while True:
        code = "".join(secrets.choice(VERIFICATION_ALPHABET) for _ in range(VERIFICATION_CODE_LENGTH))
        if code not in taken:
            return code


def _has_issued_certificate(certificates: Iterable[CertificateRecord], enrollment_id: str) -> bool:
    return any(c.enrollment_id == enrollment_id and c.status == "issued" for c in certificates)


def _current_certificate(certificates: Iterable[CertificateRecord], enrollment_id: str) -> Optional[CertificateRecord]:
    """Le certificat émis s'il existe, sinon le plus récent (révoqué)."""
    own = [c for c in certificates if c.enrollment_id == enrollment_id]
    issued = [c for c in own if c.status == "issued"]
    if issued:
        return issued[-1]
    return max(own, key=lambda c: c.issued_at, default=None)


def generate_for_enrollment(
    enrollment: Enrollment,
    event: Optional[Event],
    student: Optional[StudentResponse],
    attendances: Iterable,
    existing_certificates: Iterable[CertificateRecord],
    now: Optional[datetime] = None,
) -> Optional[CertificateRecord]:
    """
    Produit un nouveau certificat, ou None (no-op) si :
    - l'événement ou l'étudiant n'a pas pu être résolu ;
    - le taux de présence est sous le seuil de l'événement ;
    - un certificat « issued » existe déjà pour l'inscription.
    """
    if event is None or student is None:
        return None

    pct = attendance_percentage(enrollment_attendances(attendances, enrollment.id))
    if not is_eligible(pct, event.min_attendance_percentage):
        logger.debug("Inscription %s non éligible (%d%% < %d%%)", enrollment.id, pct, event.min_attendance_percentage)
        return None

    existing_certificates = list(existing_certificates)
    if _has_issued_certificate(existing_certificates, enrollment.id):
        logger.debug("Inscription %s : certificat déjà émis, ignorée", enrollment.id)
        return None

    certificate_id = uuid.uuid4().hex
    return CertificateRecord(
        id=certificate_id,
        enrollment_id=enrollment.id,
        event_id=event.id,
        issued_at=now or datetime.now(timezone.utc),
        verification_code=generate_verification_code(c.verification_code for c in existing_certificates),
        status="issued",
        pdf_url=f"/certificates/{certificate_id}.pdf",
    )


def batch_generate(
    event_id: Optional[str],
    events: Iterable[Event],
    students: Iterable[StudentResponse],
    enrollments: Iterable[Enrollment],
    attendances: Iterable,
    existing_certificates: Iterable[CertificateRecord],
    on_created: Optional[Callable[[CertificateRecord], None]] = None,
) -> BatchResult:
    """
    Génère les certificats de toutes les inscriptions confirmées d'un événement.

    Chaque candidat est traité (pas d'arrêt anticipé) ; on_created est appelé une fois
    par certificat produit, dans l'ordre des inscriptions. Un résultat à 0 est informatif.
    """
    if not event_id:
        raise SelectionRequiredError("event_id", "Sélectionnez un événement.")

    event_id = str(event_id)
    event = next((e for e in events if e.id == event_id), None)
    students_by_id = {str(s.id): s for s in students}
    attendances = list(attendances)
    issued: List[CertificateRecord] = list(existing_certificates)
    created: List[CertificateRecord] = []

    for enrollment in enrollments:
        if enrollment.event_id != event_id or enrollment.status != "confirmed":
            continue
        certificate = generate_for_enrollment(
            enrollment,
            event,
            students_by_id.get(enrollment.student_id),
            attendances,
            issued,
        )
        if certificate is None:
            continue
        issued.append(certificate)
        created.append(certificate)
        if on_created is not None:
            on_created(certificate)

    logger.info("Événement %s : %d certificat(s) généré(s)", event_id, len(created))
    return BatchResult(event_id=event_id, generated_count=len(created), certificates=created)


def eligibility_preview(
    event_id: str,
    events: Iterable[Event],
    students: Iterable[StudentResponse],
    enrollments: Iterable[Enrollment],
    attendances: Iterable,
    certificates: Iterable[CertificateRecord],
) -> List[EligibilityRow]:
    """Aperçu par inscription confirmée ; les inscriptions non résolues sont omises."""
    event = next((e for e in events if e.id == str(event_id)), None)
    if event is None:
        return []
    students_by_id = {str(s.id): s for s in students}
    attendances = list(attendances)
    certificates = list(certificates)

    rows = []
    for enrollment in enrollments:
        if enrollment.event_id != event.id or enrollment.status != "confirmed":
            continue
        student = students_by_id.get(enrollment.student_id)
        if student is None:
            continue
        rate = attendance_percentage(enrollment_attendances(attendances, enrollment.id))
        certificate = _current_certificate(certificates, enrollment.id)
        rows.append(EligibilityRow(
            enrollment=enrollment,
            student=student,
            event=event,
            attendance_rate=rate,
            eligible=is_eligible(rate, event.min_attendance_percentage),
            has_certificate=certificate is not None and certificate.status == "issued",
            certificate=certificate,
        ))
    return rows


def certificate_summary(
    events: Iterable[Event],
    enrollments: Iterable[Enrollment],
    certificates: Iterable[CertificateRecord],
) -> CertificateSummary:
    enrollments = list(enrollments)
    certificates = list(certificates)
    event_by_enrollment = {e.id: e.event_id for e in enrollments}
    certified_events = {
        event_by_enrollment[c.enrollment_id] for c in certificates if c.enrollment_id in event_by_enrollment
    }
    return CertificateSummary(
        total=len(certificates),
        issued=sum(1 for c in certificates if c.status == "issued"),
        events_with_certificates=len(certified_events),
        available_events=sum(1 for e in events if e.status in ("published", "completed")),
        certification_rate=percent(len(certificates), len(enrollments)),
    )


# ============================================================
# Miroir local (SQLAlchemy)
# ============================================================

def list_certificates(db: DbSession, event_id: Optional[str] = None) -> List[CertificateRecord]:
    query = select(Certificate).order_by(Certificate.issued_at)
    if event_id is not None:
        query = query.where(Certificate.event_id == str(event_id))
    return [CertificateRecord.model_validate(c) for c in db.execute(query).scalars().all()]


def issue_certificates_for_event(
    db: DbSession,
    event_id: Optional[str],
    events: Iterable[Event],
    students: Iterable[StudentResponse],
    enrollments: Iterable[Enrollment],
) -> BatchResult:
    """Génération en lot à partir du miroir local ; les certificats produits y sont persistés."""
    attendances = [
        AttendanceRecord.model_validate(a)
        for a in db.execute(select(Attendance)).scalars().all()
    ]

    def persist(record: CertificateRecord) -> None:
        db.add(Certificate(**record.model_dump()))

    result = batch_generate(
        event_id,
        events,
        students,
        enrollments,
        attendances,
        list_certificates(db),
        on_created=persist,
    )
    db.commit()
    return result


def revoke_certificate(db: DbSession, certificate_id: str) -> CertificateRecord:
    """issued → revoked ; l'inscription redevient éligible à une nouvelle émission."""
    certificate = db.get(Certificate, certificate_id)
    if certificate is None:
        raise NotFoundError(f"Certificat {certificate_id} introuvable.")
    if certificate.status == "revoked":
        raise ValidationError({"status": "Le certificat est déjà révoqué."})

    certificate.status = "revoked"
    certificate.revoked_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(certificate)
    logger.info("Certificat révoqué : %s (inscription %s)", certificate.id, certificate.enrollment_id)
    return CertificateRecord.model_validate(certificate)


def find_by_verification_code(db: DbSession, code: str) -> Optional[CertificateRecord]:
    certificate = db.execute(
        select(Certificate).where(Certificate.verification_code == code.strip().upper())
    ).scalar()
    return CertificateRecord.model_validate(certificate) if certificate else None


def delete_certificates_for_enrollments(db: DbSession, enrollment_ids: Iterable[str]) -> int:
    ids = [str(i) for i in enrollment_ids]
    if not ids:
        return 0
    result = db.execute(delete(Certificate).where(Certificate.enrollment_id.in_(ids)))
    db.commit()
    return result.rowcount or 0


def delete_certificates_for_event(db: DbSession, event_id: str) -> int:
    result = db.execute(delete(Certificate).where(Certificate.event_id == str(event_id)))
    db.commit()
    return result.rowcount or 0
