import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.domain.errors import DuplicateProjectNameError, NotFoundError, ValidationError
from app.domain.project_rules import normalize_description, normalize_project_name, validate_project_priority
from app.models.project import Project, ProjectCollaborator, ProjectDepartmentAccess, ProjectStatus
from app.models.task import Task
from app.models.user import User
from app.schemas.project import ProjectCreate, ProjectUpdate

logger = logging.getLogger(__name__)


class ProjectService:
    def __init__(self, db: Session):
        self.db = db

    def _get(self, project_id: int) -> Project:
        project = self.db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise NotFoundError("Project not found")
        return project

    def is_project_name_unique(self, name: str, exclude_id: Optional[int] = None) -> bool:
        """Case-insensitive check against every project, archived ones included"""
        query = self.db.query(Project.id).filter(func.lower(Project.name) == name.lower())
        if exclude_id is not None:
            query = query.filter(Project.id != exclude_id)
        return query.first() is None

    def create_project(self, data: ProjectCreate, user: User) -> Dict:
        if not user or not user.id:
            raise ValidationError("User ID is required to create a project")
        if not user.department_id:
            raise ValidationError("Department ID is required to create a project")

        trimmed_name = (data.name or "").strip()
        if trimmed_name and not self.is_project_name_unique(trimmed_name):
            raise DuplicateProjectNameError(trimmed_name)

        project = Project(
            name=normalize_project_name(data.name),
            description=normalize_description(data.description),
            priority=validate_project_priority(data.priority),
            status=data.status or ProjectStatus.ACTIVE,
            department_id=user.department_id,
            creator_id=user.id,
        )
        self.db.add(project)
        self.db.flush()

        self.db.add(ProjectDepartmentAccess(project_id=project.id, department_id=user.department_id))
        self.db.commit()
        self.db.refresh(project)

        logger.info(f"Project created: {project.name} (id={project.id}) by user {user.id}")
        return {"id": project.id, "name": project.name}

    def update_project(self, project_id: int, data: ProjectUpdate) -> Project:
        project = self._get(project_id)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("name") is not None:
            new_name = normalize_project_name(updates["name"])
            if new_name != project.name and not self.is_project_name_unique(new_name, exclude_id=project.id):
                raise DuplicateProjectNameError(new_name)
            project.name = new_name
        if "description" in updates:
            project.description = normalize_description(updates["description"])
        if updates.get("priority") is not None:
            project.priority = validate_project_priority(updates["priority"])
        if updates.get("status") is not None:
            project.status = updates["status"]
        if updates.get("is_archived") is not None:
            project.is_archived = updates["is_archived"]

        self.db.commit()
        self.db.refresh(project)
        logger.info(f"Project {project_id} updated: {sorted(updates)}")
        return project

    def update_status(self, project_id: int, status: ProjectStatus) -> Project:
        project = self._get(project_id)
        project.status = status
        self.db.commit()
        self.db.refresh(project)
        return project

    def archive_project(self, project_id: int) -> Project:
        project = self._get(project_id)
        project.is_archived = True
        self.db.commit()
        self.db.refresh(project)
        logger.info(f"Project {project_id} archived")
        return project

    def unarchive_project(self, project_id: int) -> Project:
        project = self._get(project_id)
        project.is_archived = False
        self.db.commit()
        self.db.refresh(project)
        logger.info(f"Project {project_id} unarchived")
        return project

    def delete_project(self, project_id: int):
        project = self._get(project_id)
        if self.db.query(Task.id).filter(Task.project_id == project_id).first():
            raise ValidationError("Cannot delete project with existing tasks. Archive it instead.")
        self.db.delete(project)
        self.db.commit()
        logger.warning(f"Project {project_id} deleted")

    def get_all_projects(
        self,
        department_id: Optional[int] = None,
        creator_id: Optional[int] = None,
        status: Optional[ProjectStatus] = None,
        is_archived: Optional[bool] = None,
    ) -> List[Project]:
        query = self.db.query(Project)
        if department_id is not None:
            query = query.filter(Project.department_id == department_id)
        if creator_id is not None:
            query = query.filter(Project.creator_id == creator_id)
        if status is not None:
            query = query.filter(Project.status == status)
        if is_archived is not None:
            query = query.filter(Project.is_archived == is_archived)
        return query.order_by(Project.created_at.desc()).all()

    def get_department_projects(self, department_id: Optional[int], include_archived: bool = False) -> List[Project]:
        if not department_id:
            raise ValidationError("Department ID is required")
        query = self.db.query(Project).filter(Project.department_id == department_id)
        if not include_archived:
            query = query.filter(Project.is_archived == False)  # noqa: E712
        return query.order_by(Project.created_at.desc()).all()

    def get_project_by_id(self, project_id: int) -> Project:
        return self._get(project_id)

    def get_projects_by_creator(self, creator_id: int) -> List[Project]:
        return self.get_all_projects(creator_id=creator_id)

    def get_projects_by_status(self, status: ProjectStatus) -> List[Project]:
        return self.get_all_projects(status=status)

    def get_collaborators(self, project_id: int) -> List[ProjectCollaborator]:
        self._get(project_id)
        return (
            self.db.query(ProjectCollaborator)
            .filter(ProjectCollaborator.project_id == project_id)
            .order_by(ProjectCollaborator.added_at)
            .all()
        )
