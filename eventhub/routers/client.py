"""
Router de la configuration du client courant (backend simulé).
Pas d'endpoint de suppression.
"""

from fastapi import APIRouter, Depends, HTTPException

from eventhub.mock_backend import MockBackendStore, current_user, get_store
from eventhub.schemas.client import ClientCreate, ClientResponse, ClientUpdate

router = APIRouter(prefix="/api/v1/{tenant}/client", tags=["Client"], dependencies=[Depends(current_user)])


@router.get("", response_model=ClientResponse, summary="Client courant")
def get_client(store: MockBackendStore = Depends(get_store)):
    if store.client is None:
        raise HTTPException(status_code=404, detail="Aucun client configuré.")
    return store.client


@router.post("", response_model=ClientResponse, status_code=201, summary="Créer le client")
def create_client(data: ClientCreate, store: MockBackendStore = Depends(get_store)):
    if store.client is not None:
        raise HTTPException(status_code=409, detail="Client déjà configuré.")
    store.client = {"id": 1, **data.model_dump()}
    return store.client


@router.put("", response_model=ClientResponse, summary="Modifier le client")
def update_client(data: ClientUpdate, store: MockBackendStore = Depends(get_store)):
    if store.client is None:
        raise HTTPException(status_code=404, detail="Aucun client configuré.")
    store.client.update(data.model_dump(exclude_unset=True))
    return store.client
