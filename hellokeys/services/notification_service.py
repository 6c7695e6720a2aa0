"""
In-app notifications
Server-side code creates notifications as a side effect; a failure here must
never break the operation that triggered it
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Notification

logger = logging.getLogger(__name__)


def create_notification(db: Session, user_id: str, message: str, link: Optional[str] = None) -> Optional[Notification]:
    """Insert a notification for `user_id`. Returns None (and logs) on failure."""
    try:
        notification = Notification(user_id=user_id, message=message, link=link)
        db.add(notification)
        db.commit()
        db.refresh(notification)
        logger.info(f"🔔 Notification created for user {user_id}")
        return notification
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Failed to create notification for user {user_id}: {e}")
        return None
