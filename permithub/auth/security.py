import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import settings
from ..deps import get_store
from ..errors import Unauthenticated
from ..models.models import User
from ..services.entity_store import EntityStore
from .passwords import verify_password


http_bearer = HTTPBearer(auto_error=False)
logger = structlog.get_logger(__name__)


def verify_credentials(store: EntityStore, username: str, password: str) -> User:
    """Return the user whose stored hash matches ``password``.

    Unknown usernames and wrong passwords fail the same way.
    """
    user = store.get_user_by_username(username)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("login_rejected")
        raise Unauthenticated("Invalid credentials")
    return user


def _create_token(sub: str, ttl_seconds: int, token_type: str, extra: Optional[dict] = None) -> str:
    now = datetime.now(tz=timezone.utc)
    payload = {
        "sub": sub,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
        "jti": str(uuid.uuid4()),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: int, role: str) -> str:
    return _create_token(str(user_id), settings.jwt_ttl_seconds, "access", extra={"role": role})


def create_refresh_token(user_id: int) -> str:
    return _create_token(str(user_id), settings.refresh_ttl_seconds, "refresh")


def decode_token(token: str, expected_type: str = "access") -> dict:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthenticated("Invalid token")
    if payload.get("type") != expected_type:
        raise Unauthenticated("Invalid token")
    return payload


def user_from_token(store: EntityStore, token: str, expected_type: str = "access") -> User:
    payload = decode_token(token, expected_type)
    sub = str(payload.get("sub", ""))
    user = store.get_user(int(sub)) if sub.isdigit() else None
    if user is None:
        raise Unauthenticated("Invalid subject")
    return user


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    store: EntityStore = Depends(get_store),
) -> User:
    if creds is None:
        raise Unauthenticated()
    user = user_from_token(store, creds.credentials)
    structlog.contextvars.bind_contextvars(user_id=user.id)
    return user
