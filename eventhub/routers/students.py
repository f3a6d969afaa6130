"""
Router des étudiants (backend simulé).
GET /students accepte query, page et size et renvoie la variante paginée.
"""

from fastapi import APIRouter, Depends, HTTPException

from eventhub.mock_backend import MockBackendStore, current_user, get_store
from eventhub.schemas.student import StudentCreate, StudentPage, StudentResponse, StudentUpdate

router = APIRouter(prefix="/api/v1/{tenant}/students", tags=["Étudiants"], dependencies=[Depends(current_user)])


def _matches(student: dict, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    haystack = " ".join(str(student.get(f) or "") for f in ("name", "email", "cpf", "ra")).lower()
    return needle in haystack


@router.get("", response_model=StudentPage, summary="Lister les étudiants")
def list_students(query: str = "", page: int = 1, size: int = 20, store: MockBackendStore = Depends(get_store)):
    """Retourne les étudiants triés par nom, filtrés sur nom / e-mail / CPF / RA."""
    students = sorted((s for s in store.students.values() if _matches(s, query)), key=lambda s: s["name"])
    page, size = max(page, 1), max(size, 1)
    start = (page - 1) * size
    return {"data": students[start:start + size], "total": len(students), "page": page, "size": size}


@router.post("", response_model=StudentResponse, status_code=201, summary="Créer un étudiant")
def create_student(data: StudentCreate, store: MockBackendStore = Depends(get_store)):
    if any(s["cpf"] == data.cpf for s in store.students.values()):
        raise HTTPException(status_code=409, detail="CPF déjà enregistré.")
    student = {"id": store.next_id("students"), "client_id": store.client_id, **data.model_dump()}
    store.students[student["id"]] = student
    return student


@router.get("/{student_id}", response_model=StudentResponse, summary="Détail d'un étudiant")
def get_student(student_id: int, store: MockBackendStore = Depends(get_store)):
    student = store.students.get(student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Étudiant introuvable.")
    return student


@router.put("/{student_id}", response_model=StudentResponse, summary="Modifier un étudiant")
def update_student(student_id: int, data: StudentUpdate, store: MockBackendStore = Depends(get_store)):
    student = store.students.get(student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Étudiant introuvable.")
    student.update(data.model_dump(exclude_unset=True))
    return student


@router.delete("/{student_id}", status_code=204, summary="Supprimer un étudiant")
def delete_student(student_id: int, store: MockBackendStore = Depends(get_store)):
    if student_id not in store.students:
        raise HTTPException(status_code=404, detail="Étudiant introuvable.")
    del store.students[student_id]
