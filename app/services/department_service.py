import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.domain.errors import NotFoundError, ValidationError
from app.models.department import Department
from app.models.user import User
from app.schemas.department import DepartmentCreate, DepartmentUpdate
from app.utils.hierarchy import DepartmentHierarchy

logger = logging.getLogger(__name__)


class DepartmentService:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> List[Dict]:
        """Active departments as a flat tree with levels"""
        return DepartmentHierarchy(self.db).build_tree()

    def _get(self, department_id: int) -> Department:
        department = self.db.query(Department).filter(Department.id == department_id).first()
        if not department:
            raise NotFoundError("Department not found")
        return department

    def get_by_id(self, department_id: int) -> Dict:
        department = self._get(department_id)
        children = sorted(
            (c for c in department.children if c.is_active), key=lambda c: c.name.lower()
        )
        members = sorted(
            (m for m in department.members if m.is_active), key=lambda m: m.name.lower()
        )
        return {
            "id": department.id,
            "name": department.name,
            "parent_id": department.parent_id,
            "manager_id": department.manager_id,
            "is_active": department.is_active,
            "created_at": department.created_at,
            "manager": department.manager,
            "children": children,
            "members": members,
        }

    def get_children(self, parent_id: Optional[int] = None) -> List[Department]:
        query = self.db.query(Department).filter(Department.is_active == True)  # noqa: E712
        if parent_id is None:
            query = query.filter(Department.parent_id.is_(None))
        else:
            query = query.filter(Department.parent_id == parent_id)
        return query.order_by(Department.name).all()

    def get_by_manager(self, manager_id: int) -> List[Department]:
        return (
            self.db.query(Department)
            .filter(Department.manager_id == manager_id, Department.is_active == True)  # noqa: E712
            .order_by(Department.name)
            .all()
        )

    def _check_parent(self, parent_id: Optional[int]):
        if parent_id is not None and not self.db.query(Department).filter(Department.id == parent_id).first():
            raise NotFoundError("Parent department not found")

    def _check_manager(self, manager_id: Optional[int]):
        if manager_id is not None and not self.db.query(User).filter(User.id == manager_id).first():
            raise NotFoundError("Manager not found")

    def create(self, data: DepartmentCreate) -> Department:
        self._check_parent(data.parent_id)
        self._check_manager(data.manager_id)

        department = Department(
            name=data.name.strip(),
            parent_id=data.parent_id,
            manager_id=data.manager_id,
        )
        self.db.add(department)
        self.db.commit()
        self.db.refresh(department)
        logger.info(f"Department created: {department.name} (id={department.id})")
        return department

    def update(self, department_id: int, data: DepartmentUpdate) -> Department:
        department = self._get(department_id)
        updates = data.model_dump(exclude_unset=True)

        if "parent_id" in updates:
            if updates["parent_id"] == department_id:
                raise ValidationError("Department cannot be its own parent")
            self._check_parent(updates["parent_id"])
        if "manager_id" in updates:
            self._check_manager(updates["manager_id"])
        if updates.get("name") is not None:
            updates["name"] = updates["name"].strip()

        for field, value in updates.items():
            setattr(department, field, value)

        self.db.commit()
        self.db.refresh(department)
        logger.info(f"Department {department_id} updated: {sorted(updates)}")
        return department

    def delete(self, department_id: int) -> Department:
        """Soft delete, refused while active children remain"""
        department = self._get(department_id)
        active_children = (
            self.db.query(Department)
            .filter(Department.parent_id == department_id, Department.is_active == True)  # noqa: E712
            .count()
        )
        if active_children:
            raise ValidationError("Cannot delete department with active child departments")

        department.is_active = False
        self.db.commit()
        self.db.refresh(department)
        logger.info(f"Department {department_id} deactivated")
        return department
