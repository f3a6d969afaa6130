"""
Router des événements et de leurs jours (backend simulé).

Contraintes reproduites :
- la capacité d'un jour ne peut pas dépasser celle de l'événement (422) ;
- un événement qui a encore des jours ne peut pas être supprimé (409).
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from eventhub.mock_backend import MockBackendStore, current_user, get_store
from eventhub.schemas.event import (
    ApiEvent,
    ApiEventDay,
    EventCreate,
    EventDayCreate,
    EventDayUpdate,
    EventUpdate,
)

router = APIRouter(prefix="/api/v1/{tenant}/events", tags=["Événements"], dependencies=[Depends(current_user)])


def _get_event(store: MockBackendStore, event_id: int) -> Dict[str, Any]:
    event = store.events.get(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Événement introuvable.")
    return event


def _get_day(store: MockBackendStore, event_id: int, day_id: int) -> Dict[str, Any]:
    day = store.days.get(day_id)
    if day is None or day["event_id"] != event_id:
        raise HTTPException(status_code=404, detail="Jour introuvable.")
    return day


def _check_capacity(event: Dict[str, Any], capacity: int) -> None:
    if capacity > event["capacity_total"]:
        raise HTTPException(
            status_code=422,
            detail=f"La capacité du jour ({capacity}) dépasse celle de l'événement ({event['capacity_total']}).",
        )


@router.get("", response_model=List[ApiEvent], summary="Lister les événements")
def list_events(store: MockBackendStore = Depends(get_store)):
    return sorted(store.events.values(), key=lambda e: e["id"])


@router.post("", response_model=ApiEvent, status_code=201, summary="Créer un événement")
def create_event(data: EventCreate, store: MockBackendStore = Depends(get_store)):
    event = {"id": store.next_id("events"), "client_id": store.client_id, **data.model_dump()}
    store.events[event["id"]] = event
    return event


@router.get("/{event_id}", response_model=ApiEvent, summary="Détail d'un événement")
def get_event(event_id: int, store: MockBackendStore = Depends(get_store)):
    return _get_event(store, event_id)


@router.put("/{event_id}", response_model=ApiEvent, summary="Modifier un événement")
def update_event(event_id: int, data: EventUpdate, store: MockBackendStore = Depends(get_store)):
    """Met à jour les champs fournis. Les champs absents ne sont pas modifiés."""
    event = _get_event(store, event_id)
    update_data = data.model_dump(exclude_unset=True)
    if "capacity_total" in update_data:
        for day in store.days.values():
            if day["event_id"] == event_id and day["capacity"] > update_data["capacity_total"]:
                raise HTTPException(status_code=422, detail="Un jour dépasse la nouvelle capacité.")
    event.update(update_data)
    return event


@router.delete("/{event_id}", status_code=204, summary="Supprimer un événement")
def delete_event(event_id: int, store: MockBackendStore = Depends(get_store)):
    _get_event(store, event_id)
    if any(d["event_id"] == event_id for d in store.days.values()):
        raise HTTPException(status_code=409, detail="Event has existing days; delete them first.")
    del store.events[event_id]
    for enrollment_id in [i for i, e in store.enrollments.items() if e["event_id"] == event_id]:
        del store.enrollments[enrollment_id]


# --- Jours ---

@router.get("/{event_id}/days", response_model=List[ApiEventDay], summary="Lister les jours d'un événement")
def list_days(event_id: int, store: MockBackendStore = Depends(get_store)):
    _get_event(store, event_id)
    days = [d for d in store.days.values() if d["event_id"] == event_id]
    return sorted(days, key=lambda d: (d["date"], d["start_time"]))


@router.post("/{event_id}/days", response_model=ApiEventDay, status_code=201, summary="Ajouter un jour")
def create_day(event_id: int, data: EventDayCreate, store: MockBackendStore = Depends(get_store)):
    event = _get_event(store, event_id)
    _check_capacity(event, data.capacity)
    day = {"id": store.next_id("days"), "event_id": event_id, **data.model_dump(mode="json")}
    store.days[day["id"]] = day
    return day


@router.get("/{event_id}/days/{day_id}", response_model=ApiEventDay, summary="Détail d'un jour")
def get_day(event_id: int, day_id: int, store: MockBackendStore = Depends(get_store)):
    return _get_day(store, event_id, day_id)


@router.put("/{event_id}/days/{day_id}", response_model=ApiEventDay, summary="Modifier un jour")
def update_day(event_id: int, day_id: int, data: EventDayUpdate, store: MockBackendStore = Depends(get_store)):
    event = _get_event(store, event_id)
    day = _get_day(store, event_id, day_id)
    update_data = data.model_dump(mode="json", exclude_unset=True)
    if update_data.get("capacity") is not None:
        _check_capacity(event, update_data["capacity"])
    day.update(update_data)
    return day


@router.delete("/{event_id}/days/{day_id}", status_code=204, summary="Supprimer un jour")
def delete_day(event_id: int, day_id: int, store: MockBackendStore = Depends(get_store)):
    _get_day(store, event_id, day_id)
    del store.days[day_id]
