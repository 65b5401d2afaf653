# app/services/report_service.py
"""
Project report export for HR/Admin users
"""

import csv
import io
import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.domain.errors import NotFoundError, UnauthorizedError
from app.models.project import Project, ProjectCollaborator
from app.models.task import Task
from app.models.user import User

logger = logging.getLogger(__name__)


class ProjectReportService:
    def __init__(self, db: Session):
        self.db = db

    def get_project_report_data(self, project_id: int, user_id: int) -> Dict[str, Any]:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        if not user.is_hr:
            raise UnauthorizedError("Unauthorized: Only HR/Admin users can export reports")

        project = self.db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise NotFoundError("Project not found")

        tasks = (
            self.db.query(Task)
            .filter(Task.project_id == project_id)
            .order_by(Task.created_at)
            .all()
        )
        collaborators = (
            self.db.query(ProjectCollaborator)
            .filter(ProjectCollaborator.project_id == project_id)
            .order_by(ProjectCollaborator.added_at)
            .all()
        )

        logger.info(f"User {user_id} exported report for project {project_id}")
        return {
            "project": {
                "id": project.id,
                "name": project.name,
                "description": project.description,
                "priority": project.priority,
                "status": project.status.value,
                "department_name": project.department.name,
                "creator_name": project.creator.name,
                "creator_email": project.creator.email,
                "created_at": project.created_at,
                "updated_at": project.updated_at,
            },
            "tasks": [
                {
                    "id": task.id,
                    "title": task.title,
                    "description": task.description,
                    "status": task.status.value,
                    "priority": task.priority,
                    "due_date": task.due_date,
                    "created_at": task.created_at,
                    "owner_name": task.owner.name,
                    "owner_email": task.owner.email,
                    "assignees": [a.user.name for a in task.assignments],
                }
                for task in tasks
            ],
            "collaborators": [
                {
                    "name": c.user.name,
                    "email": c.user.email,
                    "department_name": c.department.name,
                    "added_at": c.added_at,
                }
                for c in collaborators
            ],
        }


def report_to_csv(report: Dict[str, Any]) -> str:
    """Render report data as a sectioned CSV document"""
    output = io.StringIO()
    writer = csv.writer(output)

    project = report["project"]
    writer.writerow(["Project Report", project["name"]])
    writer.writerow(["Description", project["description"] or ""])
    writer.writerow(["Status", project["status"]])
    writer.writerow(["Priority", project["priority"]])
    writer.writerow(["Department", project["department_name"]])
    writer.writerow(["Created By", f'{project["creator_name"]} <{project["creator_email"]}>'])
    writer.writerow(["Created At", project["created_at"].isoformat()])
    writer.writerow([])

    writer.writerow(["Tasks"])
    writer.writerow(["ID", "Title", "Status", "Priority", "Due Date", "Owner", "Assignees"])
    for task in report["tasks"]:
        writer.writerow([
            task["id"],
            task["title"],
            task["status"],
            task["priority"],
            task["due_date"].isoformat(),
            task["owner_name"],
            "; ".join(task["assignees"]),
        ])
    writer.writerow([])

    writer.writerow(["Collaborators"])
    writer.writerow(["Name", "Email", "Department", "Added At"])
    for collaborator in report["collaborators"]:
        writer.writerow([
            collaborator["name"],
            collaborator["email"],
            collaborator["department_name"],
            collaborator["added_at"].isoformat(),
        ])

    return output.getvalue()
