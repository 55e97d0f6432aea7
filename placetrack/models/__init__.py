"""SQLAlchemy models."""

from placetrack.models.user import User
from placetrack.models.place import Place
from placetrack.models.keyword import Keyword, PlaceKeyword, normalize_keyword, normalize_region
from placetrack.models.competitor import Competitor, CompetitorSnapshot
from placetrack.models.tracking import RankingHistory, Review, ReviewHistory, ReviewType, Sentiment
from placetrack.models.notification import NotificationLog, NotificationSetting, NotificationType

__all__ = [
    "User",
    "Place",
    "Keyword",
    "PlaceKeyword",
    "normalize_keyword",
    "normalize_region",
    "Competitor",
    "CompetitorSnapshot",
    "RankingHistory",
    "Review",
    "ReviewHistory",
    "ReviewType",
    "Sentiment",
    "NotificationLog",
    "NotificationSetting",
    "NotificationType",
]
