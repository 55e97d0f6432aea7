"""Notification setting and log repositories."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import joinedload

from placetrack.models.notification import NotificationLog, NotificationSetting
from placetrack.repositories.base import BaseRepository


class NotificationSettingRepository(BaseRepository[NotificationSetting]):
    model = NotificationSetting
    entity_name = "NotificationSetting"

    def _with_place(self):
        return self.query().options(joinedload(NotificationSetting.place))

    def find_by_user_id(self, user_id: str) -> List[NotificationSetting]:
        query = self._with_place().filter(NotificationSetting.user_id == user_id)
        return self.all(query.order_by(NotificationSetting.created_at))

    def find_enabled_matching(self, user_id: str, place_id: str, notification_type: str) -> List[NotificationSetting]:
        """Enabled settings for this place or covering all of the user's places."""
        query = self.query().filter(
            NotificationSetting.user_id == user_id,
            NotificationSetting.notification_type == notification_type,
            NotificationSetting.is_enabled.is_(True),
            or_(NotificationSetting.place_id == place_id, NotificationSetting.place_id.is_(None)),
        )
        return self.all(query.order_by(NotificationSetting.created_at))


class NotificationLogRepository(BaseRepository[NotificationLog]):
    model = NotificationLog
    entity_name = "NotificationLog"

    def find_by_place_id(self, place_id: str, limit: Optional[int] = None) -> List[NotificationLog]:
        query = (
            self.query()
            .options(joinedload(NotificationLog.place))
            .filter(NotificationLog.place_id == place_id)
            .order_by(NotificationLog.created_at.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return self.all(query)

    def find_unsent(self) -> List[NotificationLog]:
        """Oldest first, so delivery drains in creation order."""
        query = (
            self.query()
            .filter(NotificationLog.is_sent.is_(False), NotificationLog.error_message.is_(None))
            .order_by(NotificationLog.created_at.asc())
        )
        return self.all(query)

    def mark_as_sent(self, id: str, sent_at: datetime) -> NotificationLog:
        return self.update(id, is_sent=True, sent_at=sent_at, error_message=None)

    def mark_as_failed(self, id: str, error_message: str) -> NotificationLog:
        return self.update(id, is_sent=False, error_message=error_message)
