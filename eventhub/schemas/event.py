"""
Schémas Pydantic pour les événements et leurs jours (sessions).

Deux familles :
- Les schémas « Api* / *Create / *Update » reflètent le format du backend (snake_case,
  capacity_total, min_presence_pct...) et valident les charges utiles à la frontière.
- Event et Session sont les enregistrements manipulés par le tableau de bord.

Note : on importe datetime en tant que module (dt) pour éviter le conflit de nommage
entre le champ `date` et le type `datetime.date` dans Pydantic v2.
"""

import datetime as dt
import re
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

VALID_EVENT_STATUSES = {"draft", "published", "completed"}
TIME_REGEX = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")

EventStatus = Literal["draft", "published", "completed"]


def _check_time(v: Optional[str]) -> Optional[str]:
    if v is not None and not TIME_REGEX.match(v):
        raise ValueError("Horaire invalide (format attendu HH:MM).")
    return v


# --- Format backend ---

class EventCreate(BaseModel):
    """Corps de POST /events."""
    title: str
    description: str = ""
    venue: str = ""
    capacity_total: int = Field(gt=0)
    workload_hours: int = Field(default=0, ge=0)
    min_presence_pct: int = Field(ge=0, le=100)
    start_at: Optional[str] = None
    end_at: Optional[str] = None
    status: str = "draft"
    tracks: List[str] = []
    speakers: List[str] = []

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le titre ne peut pas être vide.")
        return v.strip()

    @field_validator("status")
    @classmethod
    def valid_status(cls, v: str) -> str:
        if v not in VALID_EVENT_STATUSES:
            raise ValueError(f"Statut invalide. Valeurs acceptées : {sorted(VALID_EVENT_STATUSES)}")
        return v


class EventUpdate(BaseModel):
    """Corps de PUT /events/{id} : seuls les champs fournis sont envoyés."""
    title: Optional[str] = None
    description: Optional[str] = None
    venue: Optional[str] = None
    capacity_total: Optional[int] = Field(default=None, gt=0)
    workload_hours: Optional[int] = Field(default=None, ge=0)
    min_presence_pct: Optional[int] = Field(default=None, ge=0, le=100)
    start_at: Optional[str] = None
    end_at: Optional[str] = None
    status: Optional[str] = None
    tracks: Optional[List[str]] = None
    speakers: Optional[List[str]] = None

    @field_validator("status")
    @classmethod
    def valid_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in VALID_EVENT_STATUSES:
            raise ValueError(f"Statut invalide. Valeurs acceptées : {sorted(VALID_EVENT_STATUSES)}")
        return v


class ApiEvent(BaseModel):
    """Événement tel que renvoyé par le backend."""
    id: int
    client_id: int
    title: str
    description: Optional[str] = ""
    venue: Optional[str] = ""
    capacity_total: int
    workload_hours: int = 0
    min_presence_pct: int
    start_at: Optional[str] = None
    end_at: Optional[str] = None
    status: str
    tracks: Optional[List[str]] = None
    speakers: Optional[List[str]] = None


class EventDayCreate(BaseModel):
    """Corps de POST /events/{id}/days."""
    date: dt.date
    start_time: str
    end_time: str
    room: str = ""
    capacity: int = Field(gt=0)
    session_type: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def valid_time(cls, v: Optional[str]) -> Optional[str]:
        return _check_time(v)


class EventDayUpdate(BaseModel):
    date: Optional[dt.date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    room: Optional[str] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    session_type: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def valid_time(cls, v: Optional[str]) -> Optional[str]:
        return _check_time(v)


class ApiEventDay(BaseModel):
    """Jour d'événement tel que renvoyé par le backend."""
    id: int
    event_id: int
    date: str
    start_time: str
    end_time: str
    room: Optional[str] = ""
    capacity: int
    session_type: Optional[str] = None


# --- Enregistrements du tableau de bord ---

class Session(BaseModel):
    """Jour / session d'un événement. event_id est une simple référence."""
    id: str
    event_id: str
    date: str
    start_time: str
    end_time: str
    room: str = ""
    capacity: Optional[int] = None
    session_type: Optional[str] = None


class Event(BaseModel):
    id: str
    title: str
    description: str = ""
    location: str = ""
    capacity: int
    start_date: str = ""
    end_date: str = ""
    min_attendance_percentage: int = Field(ge=0, le=100)
    status: EventStatus = "draft"
    workload_hours: int = 0
    sessions: List[Session] = []
    tracks: List[str] = []
    speakers: List[str] = []
