import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.domain.errors import ConflictError, NotFoundError, ValidationError
from app.models.department import Department
from app.models.project import Project, ProjectCollaborator
from app.models.task import CalendarEvent, Comment, Task, TaskAssignment, TaskFile
from app.models.task_log import TaskLog
from app.models.team import Team, TeamMember
from app.models.user import User, UserRole
from app.schemas.user import UserCreate, UserSignup, UserUpdate
from app.utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class UserService:
    """Profile management. Mutations are reserved for HR admins at the router level."""

    def __init__(self, db: Session):
        self.db = db

    def _get(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def _check_department(self, department_id: int):
        if not self.db.query(Department).filter(Department.id == department_id).first():
            raise NotFoundError("Department not found")

    def _check_email_free(self, email: str):
        if self.db.query(User).filter(User.email == email).first():
            raise ConflictError("User with this email already exists")

    def signup(self, data: UserSignup) -> User:
        """Self-service registration always creates a STAFF profile"""
        self._check_department(data.department_id)
        self._check_email_free(data.email)

        user = User(
            name=data.name.strip(),
            email=data.email,
            hashed_password=hash_password(data.password),
            role=UserRole.STAFF,
            department_id=data.department_id,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"New signup: {user.email} (id={user.id})")
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.db.query(User).filter(User.email == email).first()
        if not user or not verify_password(password, user.hashed_password):
            return None
        return user

    def create_user(self, data: UserCreate) -> User:
        self._check_department(data.department_id)
        self._check_email_free(data.email)

        user = User(
            name=data.name.strip(),
            email=data.email,
            hashed_password=hash_password(data.password),
            role=data.role,
            department_id=data.department_id,
            is_hr_admin=data.is_hr_admin,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User created: {user.email} role={user.role.value}")
        return user

    def update_user(self, user_id: int, data: UserUpdate) -> User:
        user = self._get(user_id)
        updates = data.model_dump(exclude_unset=True, exclude_none=True)

        if "department_id" in updates and updates["department_id"] != user.department_id:
            self._check_department(updates["department_id"])
        if "email" in updates and updates["email"] != user.email:
            self._check_email_free(updates["email"])
        if "password" in updates:
            user.hashed_password = hash_password(updates.pop("password"))

        for field, value in updates.items():
            setattr(user, field, value)

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {user_id} updated: {sorted(updates)}")
        return user

    def deactivate_user(self, user_id: int) -> User:
        user = self._get(user_id)
        user.is_active = False
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {user_id} deactivated")
        return user

    def reactivate_user(self, user_id: int) -> User:
        user = self._get(user_id)
        user.is_active = True
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {user_id} reactivated")
        return user

    def _has_task_history(self, user_id: int) -> bool:
        """Whether any task, project or log row still points at the user"""
        references = (
            Task.owner_id,
            TaskAssignment.user_id,
            TaskAssignment.assigned_by_id,
            Comment.user_id,
            TaskFile.uploaded_by_id,
            CalendarEvent.user_id,
            TaskLog.user_id,
            Project.creator_id,
            ProjectCollaborator.user_id,
        )
        return any(self.db.query(column).filter(column == user_id).first() is not None for column in references)

    def delete_user(self, user_id: int) -> Dict:
        user = self._get(user_id)
        if self._has_task_history(user_id):
            raise ValidationError("Cannot delete user with task history. Deactivate instead.")

        # Optional links are cleared rather than blocking the delete
        self.db.query(Department).filter(Department.manager_id == user_id).update(
            {Department.manager_id: None}, synchronize_session="fetch"
        )
        self.db.query(Team).filter(Team.leader_id == user_id).update(
            {Team.leader_id: None}, synchronize_session="fetch"
        )
        self.db.query(TeamMember).filter(TeamMember.user_id == user_id).delete(synchronize_session="fetch")
        self.db.delete(user)
        self.db.commit()
        logger.warning(f"User {user_id} permanently deleted")
        return {"success": True, "message": "User permanently deleted"}

    def get_all_users(self, include_inactive: bool = False) -> List[User]:
        query = self.db.query(User)
        if not include_inactive:
            query = query.filter(User.is_active == True)  # noqa: E712
        return query.order_by(User.is_active.desc(), User.name).all()

    def reset_user_password(self, user_id: int, new_password: str) -> Dict:
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("Password must be at least 6 characters")
        user = self._get(user_id)
        user.hashed_password = hash_password(new_password)
        self.db.commit()
        logger.info(f"Password reset for user {user_id}")
        return {"success": True, "message": "Password reset successfully"}

    def get_by_id(self, user_id: int) -> User:
        return self._get(user_id)

    def get_by_email(self, email: str) -> User:
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_by_department(self, department_id: int) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.department_id == department_id, User.is_active == True)  # noqa: E712
            .order_by(User.name)
            .all()
        )

    def get_by_role(self, role: UserRole) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.role == role, User.is_active == True)  # noqa: E712
            .order_by(User.name)
            .all()
        )
