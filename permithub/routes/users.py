from typing import List

from fastapi import APIRouter, Depends

from ..auth.passwords import verify_password
from ..deps import get_store
from ..errors import InvalidInput
from ..models.models import User
from ..schemas.users import PasswordChangeRequest, UserCreate, UserOut
from ..services.access_policy import require
from ..services.entity_store import EntityStore


router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=UserOut, status_code=201)
def create_user(
    payload: UserCreate,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require("users:create")),
):
    return store.create_user(
        username=payload.username,
        password=payload.password,
        role=payload.role,
        created_by=admin.id,
        team_id=payload.team_id,
    )


@router.get("", response_model=List[UserOut])
def list_users(store: EntityStore = Depends(get_store), _=Depends(require("users:list"))):
    return store.get_all_users()


@router.post("/change-password")
def change_password(
    payload: PasswordChangeRequest,
    store: EntityStore = Depends(get_store),
    user: User = Depends(require("users:change_password")),
):
    if not verify_password(payload.current_password, user.password_hash):
        raise InvalidInput("Current password is incorrect")
    store.update_user_password(user.id, payload.new_password)
    return {"message": "Password updated successfully"}
