from typing import List

from fastapi import APIRouter, Depends

from ..deps import get_store
from ..errors import NotFound
from ..ids import parse_id
from ..schemas.clients import ClientBase, ClientOut
from ..services.access_policy import require
from ..services.entity_store import EntityStore


router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.post("", response_model=ClientOut, status_code=201)
def create_client(
    payload: ClientBase,
    store: EntityStore = Depends(get_store),
    _=Depends(require("clients:create")),
):
    return store.create_client(**payload.model_dump())


@router.get("", response_model=List[ClientOut])
def list_clients(store: EntityStore = Depends(get_store), _=Depends(require("clients:list"))):
    return store.get_all_clients()


@router.get("/{client_id}", response_model=ClientOut)
def get_client(client_id: str, store: EntityStore = Depends(get_store), _=Depends(require("clients:read"))):
    client = store.get_client(parse_id(client_id))
    if client is None:
        raise NotFound("Client not found")
    return client
