from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1)
    role: Literal["admin", "collector", "approver"]
    team_id: Optional[int] = Field(default=None, gt=0)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: str
    created_by: Optional[int] = None
    team_id: Optional[int] = None
    created_at: Optional[datetime] = None


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=1)
