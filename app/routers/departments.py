from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.models.user import User
from app.schemas.department import (
    DepartmentCreate,
    DepartmentDetail,
    DepartmentOut,
    DepartmentUpdate,
    DepartmentWithLevel,
)
from app.services.department_service import DepartmentService
from app.utils.auth import get_current_user, require_hr_admin

router = APIRouter()


@router.get("/", response_model=List[DepartmentWithLevel])
def get_departments(db: Session = Depends(get_db)):
    """Active department tree, flattened with levels. Public so signup can list departments."""
    return DepartmentService(db).get_all()


@router.get("/children", response_model=List[DepartmentOut])
def get_child_departments(
    parent_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return DepartmentService(db).get_children(parent_id)


@router.get("/managed/{manager_id}", response_model=List[DepartmentOut])
def get_departments_by_manager(
    manager_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return DepartmentService(db).get_by_manager(manager_id)


@router.get("/{department_id}", response_model=DepartmentDetail)
def get_department(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return DepartmentService(db).get_by_id(department_id)


@router.post("/", response_model=DepartmentOut, status_code=status.HTTP_201_CREATED)
def create_department(
    department: DepartmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    return DepartmentService(db).create(department)


@router.put("/{department_id}", response_model=DepartmentOut)
def update_department(
    department_id: int,
    department: DepartmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    return DepartmentService(db).update(department_id, department)


@router.delete("/{department_id}", response_model=DepartmentOut)
def delete_department(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    """Soft delete"""
    return DepartmentService(db).delete(department_id)
