import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.domain.errors import NotFoundError
from app.models.notification import Notification, NotificationType
from app.models.task import Task
from app.models.user import User
from app.schemas.notification import NotificationOut
from app.services.email_service import EmailService, email_service
from app.services.websocket_manager import WebSocketManager, websocket_manager

logger = logging.getLogger(__name__)


class NotificationService:
    """Stores notifications, pushes them over WebSocket and optionally emails them"""

    def __init__(
        self,
        db: Session,
        mailer: Optional[EmailService] = None,
        realtime: Optional[WebSocketManager] = None,
    ):
        self.db = db
        self.mailer = mailer or email_service
        self.realtime = realtime or websocket_manager

    async def create(
        self,
        user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        task_id: Optional[int] = None,
        send_email: bool = True,
    ) -> Notification:
        """
        Create a notification for a user.

        The realtime push happens right after the commit. When send_email is
        set a copy goes to the user's inbox; a failed email is logged and
        does not undo the notification.
        """
        user = self.db.query(User).filter(User.id == user_id, User.is_active == True).first()  # noqa: E712
        if not user:
            raise NotFoundError("User not found or inactive")

        if task_id is not None:
            task = self.db.query(Task).filter(Task.id == task_id).first()
            if not task:
                raise NotFoundError("Task not found")

        notification = Notification(
            user_id=user_id,
            task_id=task_id,
            type=type,
            title=title,
            message=message,
            is_read=False,
        )
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)

        await self.realtime.send_notification_to_user(
            user_id=user_id,
            notification=NotificationOut.model_validate(notification).model_dump(mode="json"),
        )
        logger.info(f"Notification {notification.id} created for user {user_id}: {title}")

        if send_email and user.email:
            try:
                await self.mailer.send_email(
                    to=user.email,
                    subject=f"New Notification: {title}",
                    text=message,
                    html=(
                        f"<p>Dear {user.name or 'User'},</p>"
                        f"<p>{message}</p>"
                        f"<p>Regards,<br>Your Application Team</p>"
                    ),
                )
            except Exception as e:
                logger.error(f"Failed to email notification {notification.id} to {user.email}: {e}")

        return notification

    def _query_for_user(self, user_id: int):
        return self.db.query(Notification).filter(Notification.user_id == user_id)

    def get_by_user(self, user_id: int, limit: int = 50, offset: int = 0) -> List[Notification]:
        return (
            self._query_for_user(user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def get_unread(self, user_id: int) -> List[Notification]:
        return (
            self._query_for_user(user_id)
            .filter(Notification.is_read == False)  # noqa: E712
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .all()
        )

    def get_by_type(self, user_id: int, type: NotificationType) -> List[Notification]:
        return (
            self._query_for_user(user_id)
            .filter(Notification.type == type)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .all()
        )

    def get_by_id(self, notification_id: int, user_id: int) -> Notification:
        """Users only ever see their own notifications"""
        notification = (
            self._query_for_user(user_id)
            .filter(Notification.id == notification_id)
            .first()
        )
        if not notification:
            raise NotFoundError("Notification not found")
        return notification

    def mark_as_read(self, notification_id: int, user_id: int) -> Notification:
        notification = self.get_by_id(notification_id, user_id)
        notification.is_read = True
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_as_read(self, user_id: int) -> int:
        count = (
            self._query_for_user(user_id)
            .filter(Notification.is_read == False)  # noqa: E712
            .update({Notification.is_read: True}, synchronize_session=False)
        )
        self.db.commit()
        logger.info(f"Marked {count} notifications as read for user {user_id}")
        return count

    def delete(self, notification_id: int, user_id: int):
        notification = self.get_by_id(notification_id, user_id)
        self.db.delete(notification)
        self.db.commit()

    def delete_all_read(self, user_id: int) -> int:
        count = (
            self._query_for_user(user_id)
            .filter(Notification.is_read == True)  # noqa: E712
            .delete(synchronize_session=False)
        )
        self.db.commit()
        logger.info(f"Deleted {count} read notifications for user {user_id}")
        return count

    def get_unread_count(self, user_id: int) -> int:
        return (
            self._query_for_user(user_id)
            .filter(Notification.is_read == False)  # noqa: E712
            .count()
        )
