from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.schemas.user import UserBasic


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1)
    parent_id: Optional[int] = None
    manager_id: Optional[int] = None


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    parent_id: Optional[int] = None
    manager_id: Optional[int] = None
    is_active: Optional[bool] = None


class DepartmentOut(BaseModel):
    id: int
    name: str
    parent_id: Optional[int] = None
    manager_id: Optional[int] = None
    is_active: bool
    created_at: datetime

    model_config = {
        "from_attributes": True
    }


class DepartmentWithLevel(BaseModel):
    id: int
    name: str
    parent_id: Optional[int] = None
    level: int


class DepartmentChild(BaseModel):
    id: int
    name: str

    model_config = {
        "from_attributes": True
    }


class DepartmentDetail(DepartmentOut):
    manager: Optional[UserBasic] = None
    children: List[DepartmentChild] = []
    members: List[UserBasic] = []
