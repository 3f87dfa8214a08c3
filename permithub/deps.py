from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .db import get_db
from .services.entity_store import EntityStore
from .storage.provider import BlobStore


def get_store(db: Session = Depends(get_db)) -> EntityStore:
    return EntityStore(db)


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store
