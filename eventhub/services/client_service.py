"""
Service pour la configuration du client (tenant unique).
Le backend expose uniquement « mon client » : GET / POST / PUT /client, sans suppression.
"""

import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from eventhub.exceptions import EventHubError, ValidationError
from eventhub.schemas.client import ClientCreate, ClientResponse, ClientUpdate
from eventhub.services.api_client import ApiClient
from eventhub.validators import is_valid_cnpj, is_valid_email, is_valid_phone, is_valid_slug, only_digits

logger = logging.getLogger(__name__)


def validate_client_form(
    name: Optional[str] = "",
    cnpj: Optional[str] = "",
    slug: Optional[str] = "",
    contact_email: Optional[str] = "",
    contact_phone: Optional[str] = None,
    partial: bool = False,
) -> Dict[str, str]:
    """
    Retourne les erreurs par champ.
    En mode partiel (mise à jour), un champ à None n'est pas contrôlé.
    """
    errors: Dict[str, str] = {}

    def required(value: Optional[str]) -> bool:
        return not (partial and value is None)

    if required(name) and not (name or "").strip():
        errors["name"] = "Le nom est obligatoire."

    if required(cnpj):
        if not (cnpj or "").strip():
            errors["cnpj"] = "Le CNPJ est obligatoire."
        elif not is_valid_cnpj(cnpj):
            errors["cnpj"] = "CNPJ invalide."

    if required(slug):
        if not (slug or "").strip():
            errors["slug"] = "Le slug est obligatoire."
        elif not is_valid_slug(slug.strip()):
            errors["slug"] = "Slug invalide (minuscules, chiffres et tirets)."

    if required(contact_email):
        if not (contact_email or "").strip():
            errors["contact_email"] = "L'e-mail de contact est obligatoire."
        elif not is_valid_email(contact_email.strip()):
            errors["contact_email"] = "E-mail invalide."

    if contact_phone and contact_phone.strip() and not is_valid_phone(contact_phone):
        errors["contact_phone"] = "Téléphone invalide."

    return errors


def client_from_form(form: Dict[str, Any], partial: bool = False) -> Union[ClientCreate, ClientUpdate]:
    """
    Construit le schéma à partir des champs bruts du formulaire.
    Les règles du formulaire passent d'abord ; une erreur restante du schéma
    devient elle aussi une ValidationError par champ.
    """
    errors = validate_client_form(
        name=form.get("name", None if partial else ""),
        cnpj=form.get("cnpj", None if partial else ""),
        slug=form.get("slug", None if partial else ""),
        contact_email=form.get("contact_email", None if partial else ""),
        contact_phone=form.get("contact_phone"),
        partial=partial,
    )
    if errors:
        raise ValidationError(errors)
    try:
        return (ClientUpdate if partial else ClientCreate)(**form)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc


async def get_current_client(api: ApiClient) -> Optional[ClientResponse]:
    return await api.request("GET", "/client", response_model=ClientResponse)


async def create_client(api: ApiClient, data: ClientCreate) -> ClientResponse:
    errors = validate_client_form(
        name=data.name,
        cnpj=data.cnpj,
        slug=data.slug,
        contact_email=data.contact_email,
        contact_phone=data.contact_phone,
    )
    if errors:
        raise ValidationError(errors)

    payload = data.model_copy(update={
        "cnpj": only_digits(data.cnpj),
        "contact_phone": only_digits(data.contact_phone) if data.contact_phone else None,
    })
    created = await api.request("POST", "/client", json=payload.model_dump(), response_model=ClientResponse)
    logger.info("Client créé : %s (%s)", created.name, created.slug)
    return created


async def update_client(api: ApiClient, data: ClientUpdate) -> ClientResponse:
    errors = validate_client_form(
        name=data.name,
        cnpj=data.cnpj,
        slug=data.slug,
        contact_email=data.contact_email,
        contact_phone=data.contact_phone,
        partial=True,
    )
    if errors:
        raise ValidationError(errors)

    update = {}
    if data.cnpj is not None:
        update["cnpj"] = only_digits(data.cnpj)
    if data.contact_phone:
        update["contact_phone"] = only_digits(data.contact_phone)
    payload = data.model_copy(update=update)
    return await api.request(
        "PUT", "/client", json=payload.model_dump(exclude_unset=True), response_model=ClientResponse
    )


def delete_client(client_id: int) -> None:
    raise EventHubError(
        f"Suppression du client {client_id} indisponible : le backend n'expose pas cet endpoint."
    )
