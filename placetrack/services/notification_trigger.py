"""Notification trigger: turns newly recorded facts into pending notifications.

A setting's ``conditions`` maps condition keys to thresholds:

- ``<field>_above``: value > threshold
- ``<field>_below``: value < threshold
- ``<field>_changed``: value differs from the previous fact (threshold must be true)

An unknown value never satisfies ``above``/``below``, and ``changed`` needs a
previous fact. A setting with no conditions matches every new fact. Any
satisfied condition is enough; each matching setting appends one unsent
NotificationLog.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from placetrack.models.competitor import CompetitorSnapshot
from placetrack.models.notification import NotificationLog, NotificationSetting, NotificationType
from placetrack.models.place import Place
from placetrack.models.tracking import RankingHistory, ReviewHistory
from placetrack.repositories.notifications import NotificationLogRepository, NotificationSettingRepository
from placetrack.schemas.responses import total_review_count

logger = logging.getLogger(__name__)

OPERATORS = ("above", "below", "changed")

# Fact kind -> (notification type, fields a condition may reference)
FACT_FIELDS: Dict[type, Tuple[NotificationType, Tuple[str, ...]]] = {
    RankingHistory: (NotificationType.RANKING, ("rank", "search_result_count")),
    ReviewHistory: (
        NotificationType.REVIEW,
        ("blog_review_count", "visitor_review_count", "total_review_count", "average_rating"),
    ),
    CompetitorSnapshot: (
        NotificationType.COMPETITOR,
        ("rank", "blog_review_count", "visitor_review_count", "total_review_count", "average_rating"),
    ),
}


def parse_condition(key: str) -> Optional[Tuple[str, str]]:
    """Split ``rank_above`` into ``("rank", "above")``; None if malformed."""
    field, sep, operator = key.rpartition("_")
    if not sep or not field or operator not in OPERATORS:
        return None
    return field, operator


def fact_value(fact: Any, field: str) -> Any:
    if field == "total_review_count":
        return total_review_count(fact.blog_review_count, fact.visitor_review_count)
    return getattr(fact, field)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class NotificationTrigger:
    def __init__(self, settings: NotificationSettingRepository, logs: NotificationLogRepository):
        self.settings = settings
        self.logs = logs

    def evaluate(self, place: Place, fact: Any, previous: Optional[Any] = None) -> List[NotificationLog]:
        """Evaluate ``fact`` against the owner's enabled settings; return the new logs."""
        kind = FACT_FIELDS.get(type(fact))
        if kind is None:
            return []
        notification_type, fields = kind

        candidates = self.settings.find_enabled_matching(place.user_id, place.id, notification_type.value)
        created = []
        for setting in candidates:
            reasons = self.matched_conditions(setting, fact, previous, fields)
            if reasons is None:
                continue
            log = NotificationLog(
                notification_setting_id=setting.id,
                place_id=place.id,
                notification_type=notification_type.value,
                channel=setting.channel,
                message=self.render_message(place, notification_type, reasons),
                is_sent=False,
            )
            created.append(self.logs.save(log))

        if created:
            logger.info(f"Queued {len(created)} {notification_type.value} notification(s) for place {place.id}")
        return created

    def matched_conditions(
        self,
        setting: NotificationSetting,
        fact: Any,
        previous: Optional[Any],
        fields: Tuple[str, ...],
    ) -> Optional[List[str]]:
        """Descriptions of the satisfied conditions, or None when the setting does not fire."""
        conditions = setting.conditions or {}
        if not conditions:
            return []

        reasons = []
        for key, threshold in conditions.items():
            parsed = parse_condition(key)
            if parsed is None or parsed[0] not in fields:
                logger.warning(f"Ignoring unknown condition '{key}' on notification setting {setting.id}")
                continue
            field, operator = parsed
            value = fact_value(fact, field)

            if operator == "changed":
                if not threshold or previous is None:
                    continue
                old = fact_value(previous, field)
                if value != old:
                    reasons.append(f"{field} changed from {old} to {value}")
                continue

            if not _is_number(threshold):
                logger.warning(f"Ignoring non-numeric threshold for '{key}' on notification setting {setting.id}")
                continue
            if value is None:
                continue
            if operator == "above" and value > threshold:
                reasons.append(f"{field} {value} is above {threshold}")
            elif operator == "below" and value < threshold:
                reasons.append(f"{field} {value} is below {threshold}")

        return reasons or None

    @staticmethod
    def render_message(place: Place, notification_type: NotificationType, reasons: List[str]) -> str:
        if not reasons:
            return f"[{notification_type.value}] {place.name}: new observation recorded"
        return f"[{notification_type.value}] {place.name}: " + "; ".join(reasons)
