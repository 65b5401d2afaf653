from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.models.user import User, UserRole
from app.schemas.user import PasswordReset, UserCreate, UserOut, UserUpdate
from app.services.user_service import UserService
from app.utils.auth import get_current_user, require_hr_admin

router = APIRouter()


@router.get("/", response_model=List[UserOut])
def get_all_users(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Active users first, then by name"""
    return UserService(db).get_all_users(include_inactive=include_inactive)


@router.get("/by-email", response_model=UserOut)
def get_user_by_email(
    email: str = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserService(db).get_by_email(email)


@router.get("/by-department/{department_id}", response_model=List[UserOut])
def get_users_by_department(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserService(db).get_by_department(department_id)


@router.get("/by-role/{role}", response_model=List[UserOut])
def get_users_by_role(
    role: UserRole,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserService(db).get_by_role(role)


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserService(db).get_by_id(user_id)


# HR admin management

@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    user: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    return UserService(db).create_user(user)


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    return UserService(db).update_user(user_id, user_update)


@router.post("/{user_id}/deactivate", response_model=UserOut)
def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    return UserService(db).deactivate_user(user_id)


@router.post("/{user_id}/reactivate", response_model=UserOut)
def reactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    return UserService(db).reactivate_user(user_id)


@router.post("/{user_id}/reset-password")
def reset_user_password(
    user_id: int,
    payload: PasswordReset,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    return UserService(db).reset_user_password(user_id, payload.new_password)


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    """Permanently remove a user"""
    return UserService(db).delete_user(user_id)
