"""Notification settings management and delivery bookkeeping."""

import logging
from datetime import datetime
from typing import List, Optional, Union

from placetrack.db.base import utcnow
from placetrack.models.notification import NotificationSetting
from placetrack.repositories.entities import PlaceRepository, UserRepository
from placetrack.repositories.notifications import NotificationLogRepository, NotificationSettingRepository
from placetrack.schemas.commands import NotificationSettingCreate, NotificationSettingUpdate, validate_command
from placetrack.schemas.responses import (
    NotificationLogView,
    NotificationSettingView,
    project_notification_log,
    project_notification_setting,
)
from placetrack.services.guards import require

logger = logging.getLogger(__name__)


class NotificationSettingService:
    def __init__(
        self,
        users: UserRepository,
        places: PlaceRepository,
        settings: NotificationSettingRepository,
        logs: NotificationLogRepository,
    ):
        self.users = users
        self.places = places
        self.settings = settings
        self.logs = logs

    def create_setting(self, command: Union[NotificationSettingCreate, dict]) -> NotificationSettingView:
        command = validate_command(NotificationSettingCreate, command)
        require(self.users.find_by_id(command.user_id), "User", command.user_id)
        place = None
        if command.place_id is not None:
            place = require(self.places.find_by_id(command.place_id), "Place", command.place_id)

        setting = NotificationSetting(
            user_id=command.user_id,
            place=place,
            notification_type=command.notification_type.value,
            channel=command.channel,
            is_enabled=command.is_enabled,
            conditions=command.conditions,
        )
        setting = self.settings.save(setting)
        logger.info(f"Created {setting.notification_type} setting {setting.id} for user {setting.user_id}")
        return project_notification_setting(setting, include_relations=True)

    def update_setting(
        self, setting_id: str, command: Union[NotificationSettingUpdate, dict]
    ) -> NotificationSettingView:
        command = validate_command(NotificationSettingUpdate, command)
        changes = command.model_dump(exclude_unset=True)
        if changes.get("notification_type") is not None:
            changes["notification_type"] = changes["notification_type"].value
        setting = self.settings.update(setting_id, **changes)
        logger.info(f"Updated notification setting {setting_id}: {sorted(changes)}")
        return project_notification_setting(setting)

    def delete_setting(self, setting_id: str) -> None:
        self.settings.delete(setting_id)
        logger.info(f"Deleted notification setting {setting_id}")

    def get_user_settings(self, user_id: str) -> List[NotificationSettingView]:
        require(self.users.find_by_id(user_id), "User", user_id)
        settings = self.settings.find_by_user_id(user_id)
        return [project_notification_setting(s, include_relations=True) for s in settings]

    def get_logs(self, place_id: str, limit: Optional[int] = None) -> List[NotificationLogView]:
        require(self.places.find_by_id(place_id), "Place", place_id)
        logs = self.logs.find_by_place_id(place_id, limit)
        return [project_notification_log(log, include_relations=True) for log in logs]


class NotificationDeliveryService:
    """Bookkeeping for the external delivery collaborator.

    The collaborator drains ``list_pending`` and reports each outcome back;
    nothing here waits on delivery.
    """

    def __init__(self, logs: NotificationLogRepository):
        self.logs = logs

    def list_pending(self) -> List[NotificationLogView]:
        return [project_notification_log(log) for log in self.logs.find_unsent()]

    def mark_sent(self, log_id: str, sent_at: Optional[datetime] = None) -> NotificationLogView:
        log = self.logs.mark_as_sent(log_id, sent_at or utcnow())
        logger.info(f"Notification {log_id} delivered via {log.channel}")
        return project_notification_log(log)

    def mark_failed(self, log_id: str, error_message: str) -> NotificationLogView:
        log = self.logs.mark_as_failed(log_id, error_message)
        logger.warning(f"Notification {log_id} failed via {log.channel}: {error_message}")
        return project_notification_log(log)
