# app/utils/hierarchy.py
from typing import Dict, List, Optional, Set
from sqlalchemy.orm import Session
from app.models.department import Department


class DepartmentHierarchy:
    """Utility class for walking the department tree"""

    def __init__(self, db: Session):
        self.db = db

    def get_parent_id(self, department_id: int) -> Optional[int]:
        row = self.db.query(Department.parent_id).filter(Department.id == department_id).first()
        return row[0] if row else None

    def can_access_department(self, user_department_id: Optional[int], target_department_id: Optional[int]) -> bool:
        """True when target is the user's department or sits anywhere below it"""
        if user_department_id is None or target_department_id is None:
            return False
        if user_department_id == target_department_id:
            return True

        visited = set()
        current_id = target_department_id
        while current_id is not None and current_id not in visited:
            visited.add(current_id)
            department = self.db.query(Department).filter(Department.id == current_id).first()
            if not department:
                return False
            if department.parent_id == user_department_id:
                return True
            current_id = department.parent_id
        return False

    def get_descendant_ids(self, department_id: int) -> List[int]:
        """Department id plus every active department below it"""
        result = [department_id]
        seen: Set[int] = {department_id}
        frontier = [department_id]
        while frontier:
            children = self.db.query(Department.id).filter(
                Department.parent_id.in_(frontier),
                Department.is_active == True  # noqa: E712
            ).all()
            frontier = []
            for (child_id,) in children:
                if child_id not in seen:
                    seen.add(child_id)
                    result.append(child_id)
                    frontier.append(child_id)
        return result

    def build_tree(self) -> List[Dict]:
        """Flat, depth-first list of active departments with their level"""
        departments = self.db.query(Department).filter(Department.is_active == True).all()  # noqa: E712
        result: List[Dict] = []

        def add_children(parent_id: Optional[int], level: int):
            children = sorted(
                (d for d in departments if d.parent_id == parent_id),
                key=lambda d: d.name.lower(),
            )
            for child in children:
                result.append({
                    "id": child.id,
                    "name": child.name,
                    "parent_id": child.parent_id,
                    "level": level,
                })
                add_children(child.id, level + 1)

        add_children(None, 0)
        return result
