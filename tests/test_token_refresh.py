"""
Tests unitaires du coordinateur de rafraîchissement des jetons.
Le backend est simulé par httpx.MockTransport.
"""

import asyncio
import json

import httpx

from eventhub.services.session_store import SessionStore
from eventhub.services.token_refresh import TokenRefreshCoordinator


# --- Helpers ---

def make_coordinator(handler, refresh_token="ref-1"):
    session = SessionStore()
    if refresh_token:
        session.store_tokens("acc-1", refresh_token)
    http = httpx.AsyncClient(base_url="http://test/api/v1/demo", transport=httpx.MockTransport(handler))
    return TokenRefreshCoordinator(http, session), session


# --- Succès ---

def test_refresh_conserve_le_refresh_token_si_absent():
    def handler(request):
        assert request.url.path == "/api/v1/demo/auth/refresh"
        assert json.loads(request.read()) == {"refresh_token": "ref-1"}
        return httpx.Response(200, json={"access_token": "acc-2"})

    coordinator, session = make_coordinator(handler)

    assert asyncio.run(coordinator.refresh()) is True
    assert session.access_token == "acc-2"
    assert session.refresh_token == "ref-1"
    assert coordinator.refresh_calls == 1
    assert coordinator.in_flight is False


def test_refresh_remplace_le_refresh_token():
    coordinator, session = make_coordinator(
        lambda request: httpx.Response(200, json={"access_token": "acc-2", "refresh_token": "ref-2"})
    )
    assert asyncio.run(coordinator.refresh()) is True
    assert session.refresh_token == "ref-2"


def test_refreshs_concurrents_un_seul_appel_reseau():
    """5 appelants simultanés → un seul POST /auth/refresh, même résultat pour tous."""
    async def handler(request):
        await asyncio.sleep(0.05)
        return httpx.Response(200, json={"access_token": "acc-2"})

    coordinator, session = make_coordinator(handler)

    async def scenario():
        return await asyncio.gather(*(coordinator.refresh() for _ in range(5)))

    assert asyncio.run(scenario()) == [True] * 5
    assert coordinator.refresh_calls == 1
    assert coordinator.in_flight is False


def test_nouvelle_vague_nouvel_appel():
    """Le marqueur est effacé après chaque vague : une vague suivante refait un appel."""
    coordinator, _ = make_coordinator(lambda request: httpx.Response(200, json={"access_token": "acc-2"}))

    async def scenario():
        await coordinator.refresh()
        await coordinator.refresh()

    asyncio.run(scenario())
    assert coordinator.refresh_calls == 2


# --- Échec fermé ---

def test_refresh_refuse_efface_la_session():
    coordinator, session = make_coordinator(lambda request: httpx.Response(401, json={"detail": "expiré"}))

    assert asyncio.run(coordinator.refresh()) is False
    assert session.access_token is None
    assert session.refresh_token is None
    assert coordinator.in_flight is False


def test_refresh_erreur_reseau():
    def handler(request):
        raise httpx.ConnectError("connexion refusée", request=request)

    coordinator, session = make_coordinator(handler)

    assert asyncio.run(coordinator.refresh()) is False
    assert session.is_authenticated() is False


def test_refresh_reponse_mal_formee():
    coordinator, session = make_coordinator(lambda request: httpx.Response(200, json={"token": "x"}))
    assert asyncio.run(coordinator.refresh()) is False
    assert session.is_authenticated() is False


def test_refresh_corps_non_json():
    coordinator, session = make_coordinator(lambda request: httpx.Response(200, text="<html>"))
    assert asyncio.run(coordinator.refresh()) is False
    assert session.is_authenticated() is False


def test_refresh_sans_refresh_token():
    def handler(request):
        raise AssertionError("aucun appel réseau attendu")

    coordinator, session = make_coordinator(handler, refresh_token=None)

    assert asyncio.run(coordinator.refresh()) is False
    assert coordinator.refresh_calls == 0


def test_echec_concurrent_meme_resultat_pour_tous():
    async def handler(request):
        await asyncio.sleep(0.05)
        return httpx.Response(403)

    coordinator, session = make_coordinator(handler)

    async def scenario():
        return await asyncio.gather(*(coordinator.refresh() for _ in range(3)))

    assert asyncio.run(scenario()) == [False] * 3
    assert coordinator.refresh_calls == 1
    assert session.is_authenticated() is False
