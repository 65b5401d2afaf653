from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.schemas.user import DepartmentRef, UserBasic


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    department_id: int
    leader_id: Optional[int] = None


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    department_id: Optional[int] = None
    leader_id: Optional[int] = None
    is_active: Optional[bool] = None


class TeamMemberAdd(BaseModel):
    user_id: int


class TeamMembership(BaseModel):
    team_id: int
    user_id: int
    joined_at: datetime
    user: UserBasic

    model_config = {
        "from_attributes": True
    }


class TeamMemberOut(UserBasic):
    department: Optional[DepartmentRef] = None
    joined_at: datetime


class TeamOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    department_id: int
    leader_id: Optional[int] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    department: Optional[DepartmentRef] = None
    leader: Optional[UserBasic] = None
    members: List[TeamMembership] = []

    model_config = {
        "from_attributes": True
    }
