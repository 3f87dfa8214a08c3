from fastapi import APIRouter, Depends

from ..deps import get_store
from ..models.models import User
from ..schemas.auth import LoginRequest, RefreshRequest, TokenResponse
from ..schemas.users import UserOut
from ..services.entity_store import EntityStore
from .security import (
    create_access_token,
    create_refresh_token,
    get_current_user,
    user_from_token,
    verify_credentials,
)


router = APIRouter(prefix="/api", tags=["auth"])


def _issue_tokens(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.role),
        refresh_token=create_refresh_token(user.id),
    )


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, store: EntityStore = Depends(get_store)):
    user = verify_credentials(store, req.username, req.password)
    return _issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse)
def refresh(req: RefreshRequest, store: EntityStore = Depends(get_store)):
    user = user_from_token(store, req.refresh_token, expected_type="refresh")
    return _issue_tokens(user)


@router.post("/logout")
def logout(user: User = Depends(get_current_user)):
    # Tokens are stateless; the client drops them
    return {"message": "Logged out"}


@router.get("/user", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user
