"""
Notification fan-out and per-reader read tracking.

Creating notifications is best-effort: failures are logged and swallowed so
they never undo the operation that triggered them.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import and_, exists, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from crusades.core.errors import NotFound, PermissionDenied
from crusades.core.parties import (
    BROADCAST,
    NotificationType,
    Recipient,
    UserRecipient,
    is_addressed_to,
    recipient_from_column,
    recipient_to_column,
)
from crusades.models import Notification, NotificationRead
from crusades.services.serializers import notification_to_dict

logger = logging.getLogger(__name__)


def _addressed_to(user_id: str):
    return or_(
        Notification.user_id == recipient_to_column(UserRecipient(user_id)),
        Notification.user_id == recipient_to_column(BROADCAST),
    )


def _read_by(user_id: str):
    return exists().where(and_(
        NotificationRead.notification_id == Notification.id,
        NotificationRead.user_id == user_id,
    ))


class NotificationService:
    """Creates and reads notifications"""

    @staticmethod
    def notify(
        db: Session,
        recipient: Recipient,
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[Notification]:
        """Create one notification; returns None when it could not be stored"""
        return NotificationService.notify_many(db, [recipient], type, title, message, data)[0]

    @staticmethod
    def notify_many(
        db: Session,
        recipients: Iterable[Recipient],
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> List[Optional[Notification]]:
        notifications = [
            Notification(
                user_id=recipient_to_column(recipient),
                type=type.value,
                title=title,
                message=message,
                data=data,
            )
            for recipient in recipients
        ]
        if not notifications:
            return []
        try:
            db.add_all(notifications)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Failed to create {len(notifications)} '{type.value}' notification(s)")
            return [None] * len(notifications)
        return notifications

    @staticmethod
    def list_for_user(db: Session, user_id: str, page: int = 1, limit: int = 20) -> Tuple[List[Dict], int, int]:
        """Return (items, total, unread_count), newest first"""
        query = db.query(Notification).filter(_addressed_to(user_id))
        total = query.count()
        unread_count = query.filter(~_read_by(user_id)).count()
        notifications = (
            query.options(selectinload(Notification.reads))
            .order_by(Notification.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        items = [notification_to_dict(n, reader_id=user_id) for n in notifications]
        return items, total, unread_count

    @staticmethod
    def unread_count(db: Session, user_id: str) -> int:
        return db.query(Notification).filter(_addressed_to(user_id), ~_read_by(user_id)).count()

    @staticmethod
    def mark_read(db: Session, user_id: str, notification_id: str) -> Notification:
        notification = db.get(Notification, notification_id)
        if notification is None:
            raise NotFound("Notification not found")

        if not is_addressed_to(recipient_from_column(notification.user_id), user_id):
            raise PermissionDenied("You cannot mark this notification as read")

        if user_id not in notification.read_by:
            notification.reads.append(NotificationRead(user_id=user_id))
            db.commit()
        return notification

    @staticmethod
    def mark_all_read(db: Session, user_id: str) -> int:
        """Record the caller as reader of every unread notification addressed to them"""
        unread_ids = [
            row.id
            for row in db.query(Notification.id).filter(_addressed_to(user_id), ~_read_by(user_id))
        ]
        if unread_ids:
            db.bulk_insert_mappings(
                NotificationRead,
                [{"notification_id": nid, "user_id": user_id} for nid in unread_ids],
            )
            db.commit()
        return len(unread_ids)
