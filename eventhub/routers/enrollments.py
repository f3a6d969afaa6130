"""
Router des inscriptions (backend simulé).

Une seule inscription par couple (étudiant, événement) :
- inscription active existante → 200 si idempotent, sinon 409 ;
- inscription annulée + reactivate_if_canceled → réactivée sur place ;
- inscription annulée sans le drapeau → 409.
Le backend écrit « canceled » (orthographe américaine) à l'annulation.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from eventhub.mock_backend import MockBackendStore, current_user, get_store
from eventhub.schemas.enrollment import ApiEnrollment, EnrollmentCreate

router = APIRouter(prefix="/api/v1/{tenant}/enrollments", tags=["Inscriptions"], dependencies=[Depends(current_user)])


@router.get("", response_model=List[ApiEnrollment], summary="Lister les inscriptions d'un événement")
def list_enrollments(event_id: int, store: MockBackendStore = Depends(get_store)):
    return [e for e in store.enrollments.values() if e["event_id"] == event_id]


@router.post("", response_model=ApiEnrollment, status_code=201, summary="Inscrire un étudiant")
def create_enrollment(data: EnrollmentCreate, response: Response, store: MockBackendStore = Depends(get_store)):
    if data.event_id not in store.events:
        raise HTTPException(status_code=404, detail="Événement introuvable.")
    if data.student_id not in store.students:
        raise HTTPException(status_code=404, detail="Étudiant introuvable.")

    existing = next(
        (e for e in store.enrollments.values()
         if e["event_id"] == data.event_id and e["student_id"] == data.student_id),
        None,
    )
    if existing is not None:
        if existing["status"] != "canceled":
            if data.idempotent:
                response.status_code = 200
                return existing
            raise HTTPException(status_code=409, detail="Étudiant déjà inscrit à cet événement.")
        if not data.reactivate_if_canceled:
            raise HTTPException(status_code=409, detail="Inscription annulée existante.")
        existing["status"] = "confirmed"
        existing["enrolled_at"] = store.now_iso()
        response.status_code = 200
        return existing

    enrollment = {
        "id": store.next_id("enrollments"),
        "event_id": data.event_id,
        "student_id": data.student_id,
        "status": "confirmed",
        "enrolled_at": store.now_iso(),
        "qr_code": store.new_qr_code(),
    }
    store.enrollments[enrollment["id"]] = enrollment
    return enrollment


@router.post("/{enrollment_id}/cancel", response_model=ApiEnrollment, summary="Annuler une inscription")
def cancel_enrollment(enrollment_id: int, store: MockBackendStore = Depends(get_store)):
    enrollment = store.enrollments.get(enrollment_id)
    if enrollment is None:
        raise HTTPException(status_code=404, detail="Inscription introuvable.")
    enrollment["status"] = "canceled"
    return enrollment
