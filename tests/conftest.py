"""
Configuration partagée pour tous les tests.
Chaque test reçoit un backend simulé neuf et une base SQLite en mémoire isolée.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from eventhub.database import LocalStore
from eventhub.main import create_app
from eventhub.mock_backend import MockBackendStore
from eventhub.services.api_client import ApiClient
from eventhub.services.session_store import SessionStore

BASE_URL = "http://testserver/api/v1/demo"
ADMIN = ("admin@demo.com", "admin123")


@pytest.fixture
def store():
    """État du backend simulé, remis à zéro pour chaque test."""
    return MockBackendStore()


@pytest.fixture
def client(store):
    """Client HTTP de test branché sur le backend simulé."""
    with TestClient(create_app(store)) as c:
        yield c


@pytest.fixture
def auth_headers(client):
    response = client.post("/api/v1/demo/auth/login", data={"username": ADMIN[0], "password": ADMIN[1]})
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def local_store():
    """Miroir local des présences et certificats (SQLite en mémoire)."""
    local = LocalStore("sqlite://")
    local.create_all()
    yield local
    local.engine.dispose()


@pytest.fixture
def db(local_store):
    with local_store.SessionLocal() as session:
        yield session


@pytest.fixture
def make_api(store):
    """
    Fabrique d'ApiClient parlant au backend simulé via httpx.ASGITransport.
    À appeler à l'intérieur de la coroutine du test.
    """
    def factory(session=None, **kwargs) -> ApiClient:
        return ApiClient(
            base_url=BASE_URL,
            session=session if session is not None else SessionStore(),
            transport=httpx.ASGITransport(app=create_app(store)),
            **kwargs,
        )
    return factory
