"""
Service métier pour les événements et leurs jours (sessions).

Invariant de capacité : la capacité d'une session ne peut pas dépasser celle de
l'événement. Le contrôle est fait avant l'appel réseau ; une violation bloque
l'écriture avec une ValidationError (pas d'écrêtage silencieux).
"""

import asyncio
import logging
import re
from typing import Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from eventhub.exceptions import ApiError, ConflictError, ValidationError
from eventhub.schemas.event import (
    ApiEvent,
    ApiEventDay,
    Event,
    EventCreate,
    EventDayCreate,
    EventDayUpdate,
    EventUpdate,
    Session,
    VALID_EVENT_STATUSES,
)
from eventhub.services.api_client import ApiClient

logger = logging.getLogger(__name__)

HAS_DAYS_MESSAGE = (
    "Impossible de supprimer l'événement : des jours y sont encore rattachés. "
    "Supprimez d'abord les jours de l'événement puis réessayez."
)
HAS_DAYS_PATTERN = re.compile(
    r"\b409\b|conflict|dias|days|existing\s+days|has\s+days|children|foreign\s+key"
    r"|constraint|cannot\s+delete|has\s+children",
    re.IGNORECASE,
)


# --- Conversion format backend → tableau de bord ---

def to_session(day: ApiEventDay) -> Session:
    return Session(
        id=str(day.id),
        event_id=str(day.event_id),
        date=day.date,
        start_time=day.start_time,
        end_time=day.end_time,
        room=day.room or "",
        capacity=day.capacity,
        session_type=day.session_type,
    )


def to_event(api_event: ApiEvent, sessions: Optional[List[Session]] = None) -> Event:
    """Un statut inconnu du backend est ramené à « draft »."""
    status = api_event.status if api_event.status in VALID_EVENT_STATUSES else "draft"
    return Event(
        id=str(api_event.id),
        title=api_event.title,
        description=api_event.description or "",
        location=api_event.venue or "",
        capacity=api_event.capacity_total,
        start_date=api_event.start_at or "",
        end_date=api_event.end_at or "",
        min_attendance_percentage=api_event.min_presence_pct,
        status=status,
        workload_hours=api_event.workload_hours,
        sessions=sessions or [],
        tracks=api_event.tracks or [],
        speakers=api_event.speakers or [],
    )


# --- Contrôles de capacité ---

def check_session_capacity(event_capacity: int, session_capacity: Optional[int]) -> None:
    if session_capacity is not None and session_capacity > event_capacity:
        raise ValidationError({
            "capacity": (
                f"La capacité de la session ({session_capacity}) ne peut pas dépasser "
                f"la capacité de l'événement ({event_capacity})."
            )
        })


def validate_event_capacity_against_sessions(capacity: int, sessions: Optional[Iterable[Session]]) -> None:
    for session in sessions or []:
        check_session_capacity(capacity, session.capacity)


# --- Événements ---

async def list_event_days(api: ApiClient, event_id: str) -> List[Session]:
    days = await api.request("GET", f"/events/{event_id}/days", response_model=List[ApiEventDay])
    return [to_session(d) for d in days or []]


async def _sessions_or_empty(api: ApiClient, event_id: str) -> List[Session]:
    """Un échec de chargement des jours d'un événement ne bloque pas la liste."""
    try:
        return await list_event_days(api, event_id)
    except ApiError as exc:
        logger.debug("Jours de l'événement %s indisponibles : %s", event_id, exc)
        return []


async def list_events(api: ApiClient) -> List[Event]:
    """Retourne tous les événements, enrichis de leurs jours (chargés en parallèle)."""
    api_events = await api.request("GET", "/events", response_model=List[ApiEvent]) or []
    sessions = await asyncio.gather(*(_sessions_or_empty(api, str(e.id)) for e in api_events))
    return [to_event(e, s) for e, s in zip(api_events, sessions)]


async def get_event(api: ApiClient, event_id: str) -> Event:
    api_event = await api.request("GET", f"/events/{event_id}", response_model=ApiEvent)
    return to_event(api_event, await _sessions_or_empty(api, event_id))


async def create_event(
    api: ApiClient,
    data: EventCreate,
    sessions: Optional[List[Session]] = None,
) -> Event:
    """Crée un événement. Les sessions fournies sont contrôlées contre capacity_total."""
    validate_event_capacity_against_sessions(data.capacity_total, sessions)
    created = await api.request("POST", "/events", json=data.model_dump(mode="json"), response_model=ApiEvent)
    logger.info("Événement créé : %s (%s)", created.title, created.id)
    return to_event(created)


async def update_event(api: ApiClient, event: Event, data: EventUpdate) -> Event:
    """
    Met à jour les champs fournis. Une nouvelle capacité doit rester supérieure ou égale
    à celle de chaque session existante. Les sessions déjà chargées sont conservées.
    """
    if data.capacity_total is not None:
        validate_event_capacity_against_sessions(data.capacity_total, event.sessions)
    updated = await api.request(
        "PUT",
        f"/events/{event.id}",
        json=data.model_dump(mode="json", exclude_unset=True),
        response_model=ApiEvent,
    )
    return to_event(updated, event.sessions)


async def delete_event(api: ApiClient, event_id: str) -> None:
    """
    Supprime un événement côté backend.
    Lève ConflictError avec un message dédié si le backend refuse parce que
    l'événement a encore des jours.
    """
    try:
        await api.request("DELETE", f"/events/{event_id}")
    except ApiError as exc:
        if isinstance(exc, ConflictError) or HAS_DAYS_PATTERN.search(exc.message):
            raise ConflictError(exc.status_code, HAS_DAYS_MESSAGE) from exc
        raise
    logger.info("Événement supprimé : %s", event_id)


# --- Jours / sessions ---

async def create_event_day(
    api: ApiClient,
    event: Event,
    *,
    date: Optional[str] = None,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    room: Optional[str] = None,
    capacity: Optional[int] = None,
    session_type: Optional[str] = None,
) -> Session:
    """
    Ajoute un jour à l'événement.

    Valeurs par défaut : date de début de l'événement, horaires 00:00,
    salle = lieu de l'événement, capacité = capacité de l'événement.
    """
    day_capacity = capacity if capacity is not None else event.capacity
    check_session_capacity(event.capacity, day_capacity)

    day_date = date or event.start_date[:10]
    if not day_date:
        raise ValidationError({"date": "La date du jour est obligatoire."})

    try:
        payload = EventDayCreate(
            date=day_date,
            start_time=start_time or "00:00",
            end_time=end_time or "00:00",
            room=room or event.location,
            capacity=day_capacity,
            session_type=session_type,
        )
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc

    created = await api.request(
        "POST",
        f"/events/{event.id}/days",
        json=payload.model_dump(mode="json", exclude_none=True),
        response_model=ApiEventDay,
    )
    return to_session(created)


async def update_event_day(api: ApiClient, event: Event, day_id: str, **fields) -> Session:
    """Met à jour un jour ; seuls les champs renseignés sont envoyés."""
    supplied = {k: v for k, v in fields.items() if v is not None and v != ""}
    check_session_capacity(event.capacity, supplied.get("capacity"))

    try:
        payload = EventDayUpdate(**supplied)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc

    updated = await api.request(
        "PUT",
        f"/events/{event.id}/days/{day_id}",
        json=payload.model_dump(mode="json", exclude_unset=True),
        response_model=ApiEventDay,
    )
    return to_session(updated)


async def get_event_day(api: ApiClient, event_id: str, day_id: str) -> Session:
    day = await api.request("GET", f"/events/{event_id}/days/{day_id}", response_model=ApiEventDay)
    return to_session(day)


async def delete_event_day(api: ApiClient, event_id: str, day_id: str) -> None:
    await api.request("DELETE", f"/events/{event_id}/days/{day_id}")
