"""
Tests unitaires du service des présences : agrégats purs et check-in QR.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from eventhub.exceptions import NotFoundError, SelectionRequiredError, ValidationError
from eventhub.schemas.enrollment import Enrollment
from eventhub.schemas.event import Event, Session
from eventhub.schemas.student import StudentResponse
from eventhub.services.attendance_service import (
    attendance_percentage,
    attendance_stats,
    delete_attendances_for_enrollments,
    event_attendance_rate,
    list_attendances,
    percent,
    scan_qr_code,
    session_attendance_count,
    set_attendance_validity,
)


# --- Helpers ---

def make_att(enrollment_id="1", session_id="s1", is_valid=True):
    return SimpleNamespace(enrollment_id=enrollment_id, session_id=session_id, is_valid=is_valid)


def make_event(sessions=2, event_id="10") -> Event:
    return Event(
        id=event_id,
        title="Semana de Tecnologia",
        capacity=100,
        min_attendance_percentage=75,
        status="published",
        sessions=[
            Session(id=f"s{i}", event_id=event_id, date="2026-03-0%d" % i, start_time="09:00", end_time="12:00")
            for i in range(1, sessions + 1)
        ],
    )


def make_enrollment(enrollment_id="1", status="confirmed", qr="ENR-AAAA1111", event_id="10") -> Enrollment:
    return Enrollment(id=enrollment_id, student_id="7", event_id=event_id, status=status, qr_code=qr)


# --- percent / arrondi ---

def test_percent_denominateur_nul():
    assert percent(3, 0) == 0


def test_percent_arrondi_demi_superieur():
    """74,5 % → 75 % (et non 74 comme avec l'arrondi bancaire)."""
    assert percent(149, 200) == 75
    assert percent(1, 8) == 13  # 12,5 %
    assert percent(1, 3) == 33


# --- attendance_percentage ---

def test_pourcentage_liste_vide():
    assert attendance_percentage([]) == 0


def test_pourcentage_presences_valides():
    records = [make_att(is_valid=True)] * 3 + [make_att(is_valid=False)]
    assert attendance_percentage(records) == 75


def test_pourcentage_deux_tiers():
    records = [make_att(), make_att(), make_att(is_valid=False)]
    assert attendance_percentage(records) == 67


# --- session_attendance_count ---

def test_comptage_session_sans_filtre_de_validite():
    """Les présences invalides sont comptées dans le total de la session."""
    records = [make_att(session_id="s1"), make_att(session_id="s1", is_valid=False), make_att(session_id="s2")]
    assert session_attendance_count(records, "s1") == 2


# --- event_attendance_rate / stats ---

def test_taux_evenement_sans_session():
    assert event_attendance_rate([make_enrollment()], [make_att()], 0) == 0


def test_taux_evenement_ignore_inscriptions_non_confirmees():
    enrollments = [make_enrollment("1"), make_enrollment("2", status="cancelled")]
    attendances = [make_att("1", "s1"), make_att("1", "s2"), make_att("2", "s1")]
    assert event_attendance_rate(enrollments, attendances, 2) == 100


def test_attendance_stats():
    event = make_event(sessions=2)
    enrollments = [make_enrollment("1"), make_enrollment("2", qr="ENR-BBBB2222"), make_enrollment("3", status="pending")]
    attendances = [make_att("1", "s1"), make_att("1", "s2"), make_att("2", "s1"), make_att("3", "s1")]

    stats = attendance_stats(event, enrollments, attendances)

    assert stats.enrolled == 2
    assert stats.total_attendances == 3
    assert stats.attendance_rate == 75


# --- scan_qr_code ---

def test_scan_selection_manquante(db):
    with pytest.raises(SelectionRequiredError):
        scan_qr_code(db, make_event(), None, "ENR-AAAA1111", [make_enrollment()])
    with pytest.raises(SelectionRequiredError):
        scan_qr_code(db, None, "s1", "ENR-AAAA1111", [make_enrollment()])
    with pytest.raises(SelectionRequiredError):
        scan_qr_code(db, make_event(), "s1", "  ", [make_enrollment()])


def test_scan_session_hors_evenement(db):
    with pytest.raises(NotFoundError):
        scan_qr_code(db, make_event(), "s99", "ENR-AAAA1111", [make_enrollment()])


def test_scan_qr_inconnu(db):
    with pytest.raises(NotFoundError):
        scan_qr_code(db, make_event(), "s1", "ENR-INCONNU", [make_enrollment()])


def test_scan_inscription_annulee_refusee(db):
    with pytest.raises(NotFoundError):
        scan_qr_code(db, make_event(), "s1", "ENR-AAAA1111", [make_enrollment(status="cancelled")])


def test_scan_check_in_puis_check_out_puis_refus(db):
    """1er scan = check-in, 2e = check-out, 3e = ValidationError."""
    event = make_event()
    enrollments = [make_enrollment()]
    students = [StudentResponse(id=7, client_id=1, name="Ana Souza", cpf="52998224725")]
    t0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    t1 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    first = scan_qr_code(db, event, "s1", " ENR-AAAA1111 ", enrollments, students, now=t0)
    assert first.action == "check_in"
    assert first.student_name == "Ana Souza"
    assert first.attendance.checked_out_at is None
    assert first.attendance.is_valid is True

    second = scan_qr_code(db, event, "s1", "ENR-AAAA1111", enrollments, students, now=t1)
    assert second.action == "check_out"
    assert second.attendance.id == first.attendance.id
    assert second.attendance.checked_out_at is not None

    with pytest.raises(ValidationError) as exc:
        scan_qr_code(db, event, "s1", "ENR-AAAA1111", enrollments, students)
    assert "qr_code" in exc.value.field_errors

    assert len(list_attendances(db)) == 1


def test_scan_sessions_distinctes(db):
    event = make_event()
    enrollments = [make_enrollment()]
    scan_qr_code(db, event, "s1", "ENR-AAAA1111", enrollments)
    result = scan_qr_code(db, event, "s2", "ENR-AAAA1111", enrollments)
    assert result.action == "check_in"
    assert len(list_attendances(db, event_id="10")) == 2


# --- Validité et suppression ---

def test_invalider_une_presence(db):
    result = scan_qr_code(db, make_event(), "s1", "ENR-AAAA1111", [make_enrollment()])
    updated = set_attendance_validity(db, result.attendance.id, False)
    assert updated.is_valid is False


def test_invalider_presence_inexistante(db):
    with pytest.raises(NotFoundError):
        set_attendance_validity(db, "inconnue", False)


def test_suppression_par_inscription(db):
    event = make_event()
    enrollments = [make_enrollment("1"), make_enrollment("2", qr="ENR-BBBB2222")]
    scan_qr_code(db, event, "s1", "ENR-AAAA1111", enrollments)
    scan_qr_code(db, event, "s1", "ENR-BBBB2222", enrollments)

    assert delete_attendances_for_enrollments(db, ["1"]) == 1
    assert [a.enrollment_id for a in list_attendances(db)] == ["2"]
    assert delete_attendances_for_enrollments(db, []) == 0
