"""
Service métier pour les étudiants.
Validation du formulaire (nom, e-mail, CPF, téléphone) avant tout appel réseau ;
le CPF et le téléphone sont envoyés sans masque.
"""

import logging
from typing import Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from eventhub.config import settings
from eventhub.exceptions import ValidationError
from eventhub.schemas.student import StudentCreate, StudentPage, StudentResponse, StudentUpdate
from eventhub.services.api_client import ApiClient
from eventhub.validators import is_valid_cpf, is_valid_email, is_valid_phone, only_digits

logger = logging.getLogger(__name__)


def validate_student_form(
    name: str = "",
    email: str = "",
    cpf: str = "",
    phone: str = "",
) -> Dict[str, str]:
    """Retourne les erreurs par champ ; un dictionnaire vide signifie formulaire valide."""
    errors: Dict[str, str] = {}

    if not name.strip():
        errors["name"] = "Le nom est obligatoire."
    elif len(name.strip()) < 2:
        errors["name"] = "Le nom doit contenir au moins 2 caractères."

    if not email.strip():
        errors["email"] = "L'e-mail est obligatoire."
    elif not is_valid_email(email.strip()):
        errors["email"] = "E-mail invalide."

    if not cpf.strip():
        errors["cpf"] = "Le CPF est obligatoire."
    elif not is_valid_cpf(cpf):
        errors["cpf"] = "CPF invalide."

    if phone.strip() and not is_valid_phone(phone):
        errors["phone"] = "Téléphone invalide."

    return errors


async def list_students(
    api: ApiClient,
    query: str = "",
    page: int = 1,
    size: int = settings.DEFAULT_PAGE_SIZE,
) -> List[StudentResponse]:
    """Accepte une liste simple ou la variante paginée {data, total, page, size}."""
    result = await api.request(
        "GET",
        "/students",
        params={"query": query, "page": page, "size": size},
        response_model=Union[List[StudentResponse], StudentPage],
    )
    if result is None:
        return []
    if isinstance(result, StudentPage):
        return result.data
    return result


async def get_student(api: ApiClient, student_id: str) -> StudentResponse:
    return await api.request("GET", f"/students/{student_id}", response_model=StudentResponse)


async def create_student(
    api: ApiClient,
    name: str,
    email: str,
    cpf: str,
    ra: str = "",
    phone: str = "",
) -> StudentResponse:
    errors = validate_student_form(name=name, email=email, cpf=cpf, phone=phone)
    if errors:
        raise ValidationError(errors)

    try:
        payload = StudentCreate(
            name=name.strip(),
            email=email.strip(),
            cpf=only_digits(cpf),
            ra=ra.strip(),
            phone=only_digits(phone) or None,
        )
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc
    created = await api.request(
        "POST", "/students", json=payload.model_dump(exclude_none=True), response_model=StudentResponse
    )
    logger.info("Étudiant créé : %s (%s)", created.name, created.id)
    return created


async def update_student(
    api: ApiClient,
    student_id: str,
    name: str,
    email: str,
    cpf: str,
    ra: Optional[str] = None,
    phone: str = "",
) -> StudentResponse:
    """Le formulaire d'édition est complet : mêmes règles que la création."""
    errors = validate_student_form(name=name, email=email, cpf=cpf, phone=phone)
    if errors:
        raise ValidationError(errors)

    try:
        payload = StudentUpdate(
            name=name.strip(),
            email=email.strip(),
            cpf=only_digits(cpf),
            ra=ra.strip() if ra is not None else None,
            phone=only_digits(phone) or None,
        )
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc
    return await api.request(
        "PUT",
        f"/students/{student_id}",
        json=payload.model_dump(exclude_none=True),
        response_model=StudentResponse,
    )


async def delete_student(api: ApiClient, student_id: str) -> None:
    await api.request("DELETE", f"/students/{student_id}")
    logger.info("Étudiant supprimé : %s", student_id)
