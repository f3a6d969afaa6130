"""
Service métier pour les inscriptions.

Politique de doublon (une inscription par couple étudiant / événement) :
- une inscription active (non annulée) existe déjà → ValidationError, aucun appel réseau ;
- une inscription annulée existe → elle est réactivée sur place
  (reactivate_if_canceled=true), le couple garde un seul enregistrement ;
- sinon → création normale.
"""

import logging
from typing import Iterable, List, Optional

from eventhub.exceptions import NotFoundError, SelectionRequiredError, ValidationError
from eventhub.schemas.enrollment import ApiEnrollment, Enrollment, EnrollmentCreate
from eventhub.services.api_client import ApiClient

logger = logging.getLogger(__name__)


def to_enrollment(api_enrollment: ApiEnrollment) -> Enrollment:
    return Enrollment(
        id=str(api_enrollment.id),
        student_id=str(api_enrollment.student_id),
        event_id=str(api_enrollment.event_id),
        status=api_enrollment.status,
        enrolled_at=api_enrollment.enrolled_at or "",
        qr_code=api_enrollment.qr_code or "",
    )


def find_enrollment(
    enrollments: Iterable[Enrollment],
    student_id: str,
    event_id: str,
) -> Optional[Enrollment]:
    """Inscription du couple (étudiant, événement) ; la plus récente active est prioritaire."""
    match = None
    for enrollment in enrollments:
        if enrollment.student_id == str(student_id) and enrollment.event_id == str(event_id):
            if enrollment.is_active:
                return enrollment
            match = enrollment
    return match


def confirmed_enrollments(enrollments: Iterable[Enrollment], event_id: str) -> List[Enrollment]:
    return [e for e in enrollments if e.event_id == str(event_id) and e.status == "confirmed"]


async def list_enrollments(api: ApiClient, event_id: str) -> List[Enrollment]:
    result = await api.request(
        "GET",
        "/enrollments",
        params={"event_id": event_id},
        response_model=List[ApiEnrollment],
    )
    return [to_enrollment(e) for e in result or []]


async def enroll_student(
    api: ApiClient,
    event_id: Optional[str],
    student_id: Optional[str],
    existing: Iterable[Enrollment] = (),
) -> Enrollment:
    """Inscrit un étudiant en appliquant la politique de doublon décrite en tête de module."""
    if not event_id:
        raise SelectionRequiredError("event_id", "Aucun événement sélectionné.")
    if not student_id:
        raise SelectionRequiredError("student_id", "Sélectionnez un étudiant à inscrire.")

    current = find_enrollment(existing, student_id, event_id)
    if current is not None and current.is_active:
        raise ValidationError(
            {"student_id": "Cet étudiant est déjà inscrit à cet événement."}
        )

    try:
        payload = EnrollmentCreate(
            event_id=int(event_id),
            student_id=int(student_id),
            reactivate_if_canceled=current is not None,
        )
    except ValueError as exc:
        raise ValidationError({"student_id": "Identifiant invalide."}) from exc

    created = await api.request(
        "POST", "/enrollments", json=payload.model_dump(), response_model=ApiEnrollment
    )
    enrollment = to_enrollment(created)
    logger.info(
        "Inscription %s : étudiant %s → événement %s",
        "réactivée" if current is not None else "créée",
        student_id,
        event_id,
    )
    return enrollment


async def cancel_enrollment(api: ApiClient, enrollment: Optional[Enrollment]) -> Enrollment:
    """Annule une inscription ; retourne la copie locale au statut « cancelled »."""
    if enrollment is None:
        raise NotFoundError("Inscription introuvable.")
    if not enrollment.is_active:
        raise ValidationError({"status": "L'inscription est déjà annulée."})

    await api.request("POST", f"/enrollments/{enrollment.id}/cancel")
    logger.info("Inscription annulée : %s", enrollment.id)
    return enrollment.model_copy(update={"status": "cancelled"})
