from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from app.models.user import UserRole


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    department_id: int
    role: UserRole = UserRole.STAFF
    is_hr_admin: bool = False


class UserSignup(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    department_id: int


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class DepartmentRef(BaseModel):
    id: int
    name: str

    model_config = {
        "from_attributes": True
    }


class UserBasic(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole

    model_config = {
        "from_attributes": True
    }


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    department_id: int
    is_hr_admin: bool
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    department: Optional[DepartmentRef] = None

    model_config = {
        "from_attributes": True
    }


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    department_id: Optional[int] = None
    role: Optional[UserRole] = None
    is_hr_admin: Optional[bool] = None


class PasswordReset(BaseModel):
    new_password: str
