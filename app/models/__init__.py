from .department import Department
from .user import User, UserRole
from .project import Project, ProjectStatus, ProjectDepartmentAccess, ProjectCollaborator
from .team import Team, TeamMember
from .task import Task, TaskStatus, TaskAssignment, Tag, task_tags, Comment, TaskFile, CalendarEvent
from .task_log import TaskLog, TaskLogAction
from .notification import Notification, NotificationType
