from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..deps import get_store
from ..errors import NotFound
from ..ids import parse_id
from ..models.models import User
from ..schemas.teams import TeamCreate, TeamMemberAssign, TeamMemberOut, TeamOut
from ..schemas.users import UserOut
from ..services.access_policy import require
from ..services.entity_store import EntityStore


router = APIRouter(prefix="/api/teams", tags=["teams"])


@router.post("", response_model=TeamOut, status_code=201)
def create_team(
    payload: TeamCreate,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require("teams:create")),
):
    return store.create_team(name=payload.name, description=payload.description, created_by=admin.id)


@router.get("", response_model=List[TeamOut])
def list_teams(store: EntityStore = Depends(get_store), _=Depends(require("teams:list"))):
    return store.get_all_teams()


@router.get("/{team_id}/members", response_model=List[UserOut])
def list_team_members(
    team_id: str,
    store: EntityStore = Depends(get_store),
    _=Depends(require("teams:members:list")),
):
    tid = parse_id(team_id, "team ID")
    if store.get_team(tid) is None:
        raise NotFound("Team not found")
    return store.get_team_members(tid)


@router.post("/members", status_code=201)
def assign_team_member(
    payload: TeamMemberAssign,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require("teams:members:assign")),
):
    if payload.team_id == 0:
        store.remove_team_member(None, payload.user_id)
        return JSONResponse({"message": "Member removed from team"})
    member = store.add_team_member(team_id=payload.team_id, user_id=payload.user_id, added_by=admin.id)
    store.update_user_team(payload.user_id, payload.team_id)
    return TeamMemberOut.model_validate(member)
