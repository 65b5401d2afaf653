from .user import UserCreate, UserSignup, UserLogin, UserOut, UserBasic, UserUpdate, PasswordReset
from .tokens import Token
from .department import DepartmentCreate, DepartmentUpdate, DepartmentOut, DepartmentWithLevel, DepartmentDetail
from .project import (
    ProjectCreate, ProjectUpdate, ProjectStatusUpdate, ProjectCreated, ProjectOut, CollaboratorOut, ProjectReport
)
from .task import (
    TaskCreate, SubtaskCreate, TaskOut, TaskDetail, TaskCreated, TaskLogOut, CommentCreate, CommentOut,
    TaskFileOut, FileDownload, CalendarEventCreate, CalendarEventOut, TaskHierarchy, PriorityInfo, CanEditOut
)
from .notification import NotificationOut, UnreadCount, BulkResult
