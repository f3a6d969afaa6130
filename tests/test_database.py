"""
Tests du miroir local SQLite.
"""

from datetime import datetime

from eventhub.database import LocalStore
from eventhub.models.attendance import Attendance
from eventhub.services.attendance_service import list_attendances


def test_bases_en_memoire_isolees():
    first, second = LocalStore("sqlite://"), LocalStore("sqlite://")
    first.create_all()
    second.create_all()

    with first.SessionLocal() as db:
        db.add(Attendance(enrollment_id="1", session_id="s1", checked_in_at=datetime(2026, 1, 1)))
        db.commit()

    with second.SessionLocal() as db:
        assert list_attendances(db) == []


def test_reset_vide_le_miroir(local_store):
    with local_store.SessionLocal() as db:
        db.add(Attendance(enrollment_id="1", session_id="s1", checked_in_at=datetime(2026, 1, 1)))
        db.commit()

    local_store.reset()

    with local_store.SessionLocal() as db:
        assert list_attendances(db) == []
