"""
Tests du service des étudiants : validation du formulaire et CRUD contre le backend simulé.
"""

import asyncio

import httpx
import pytest

from eventhub.exceptions import ApiError, ValidationError
from eventhub.services import student_service
from eventhub.services.api_client import ApiClient
from eventhub.services.session_store import SessionStore
from eventhub.services.student_service import validate_student_form

ADMIN = ("admin@demo.com", "admin123")
ANA = {"name": "Ana Souza", "email": "ana@escola.com.br", "cpf": "529.982.247-25", "ra": "RA001",
       "phone": "(11) 98765-4321"}


# --- Validation du formulaire ---

def test_formulaire_valide():
    assert validate_student_form(ANA["name"], ANA["email"], ANA["cpf"], ANA["phone"]) == {}


def test_formulaire_champs_obligatoires():
    errors = validate_student_form("", "", "", "")
    assert set(errors) == {"name", "email", "cpf"}


def test_formulaire_valeurs_invalides():
    errors = validate_student_form("A", "ana@", "111.111.111-11", "1234")
    assert set(errors) == {"name", "email", "cpf", "phone"}


def test_creation_invalide_sans_appel_reseau():
    def handler(request):
        raise AssertionError("aucun appel réseau attendu")

    session = SessionStore()
    session.store_tokens("acc", "ref")

    async def scenario():
        async with ApiClient(base_url="http://test", session=session, transport=httpx.MockTransport(handler)) as api:
            await student_service.create_student(api, name="Ana", email="ana@x.com", cpf="123")

    with pytest.raises(ValidationError) as exc:
        asyncio.run(scenario())
    assert exc.value.field_errors == {"cpf": "CPF invalide."}


def test_mise_a_jour_email_invalide_sans_appel_reseau():
    def handler(request):
        raise AssertionError("aucun appel réseau attendu")

    session = SessionStore()
    session.store_tokens("acc", "ref")

    async def scenario():
        async with ApiClient(base_url="http://test", session=session, transport=httpx.MockTransport(handler)) as api:
            await student_service.update_student(api, "1", name=ANA["name"], email="ana..souza@escola.com.br", cpf=ANA["cpf"])

    with pytest.raises(ValidationError) as exc:
        asyncio.run(scenario())
    assert set(exc.value.field_errors) == {"email"}


# --- CRUD ---

def test_creation_envoie_cpf_et_telephone_sans_masque(make_api, store):
    async def scenario():
        async with make_api() as api:
            await api.login(*ADMIN)
            return await student_service.create_student(api, **ANA)

    student = asyncio.run(scenario())
    assert student.cpf == "52998224725"
    assert student.phone == "11987654321"
    assert store.students[student.id]["cpf"] == "52998224725"


def test_liste_paginee_et_recherche(make_api):
    async def scenario():
        async with make_api() as api:
            await api.login(*ADMIN)
            await student_service.create_student(api, **ANA)
            await student_service.create_student(api, name="Bruno Lima", email="bruno@escola.com.br",
                                                 cpf="111.444.777-35")
            everyone = await student_service.list_students(api)
            found = await student_service.list_students(api, query="bruno")
            page_two = await student_service.list_students(api, page=2, size=1)
            return everyone, found, page_two

    everyone, found, page_two = asyncio.run(scenario())
    assert [s.name for s in everyone] == ["Ana Souza", "Bruno Lima"]
    assert [s.name for s in found] == ["Bruno Lima"]
    assert [s.name for s in page_two] == ["Bruno Lima"]


def test_liste_simple_acceptee():
    """Le backend peut aussi renvoyer une liste non paginée."""
    session = SessionStore()
    session.store_tokens("acc", "ref")
    body = [{"id": 1, "client_id": 1, "name": "Ana", "cpf": "52998224725"}]
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))

    async def scenario():
        async with ApiClient(base_url="http://test", session=session, transport=transport) as api:
            return await student_service.list_students(api)

    students = asyncio.run(scenario())
    assert len(students) == 1
    assert students[0].name == "Ana"


def test_mise_a_jour_et_suppression(make_api):
    async def scenario():
        async with make_api() as api:
            await api.login(*ADMIN)
            created = await student_service.create_student(api, **ANA)
            updated = await student_service.update_student(
                api, created.id, name="Ana S. Souza", email=ANA["email"], cpf=ANA["cpf"]
            )
            await student_service.delete_student(api, created.id)
            with pytest.raises(ApiError) as exc:
                await student_service.get_student(api, created.id)
            return updated, exc.value

    updated, error = asyncio.run(scenario())
    assert updated.name == "Ana S. Souza"
    assert updated.ra == "RA001"
    assert error.status_code == 404
