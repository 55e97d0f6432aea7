"""Tracking use cases and their composition for one unit of work."""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from placetrack.core.config import Settings, settings as default_settings
from placetrack.repositories import (
    CompetitorRepository,
    CompetitorSnapshotRepository,
    KeywordRepository,
    NotificationLogRepository,
    NotificationSettingRepository,
    PlaceKeywordRepository,
    PlaceRepository,
    RankingHistoryRepository,
    ReviewHistoryRepository,
    ReviewRepository,
    UserRepository,
)
from placetrack.services.competitor_service import CompetitorService
from placetrack.services.keyword_service import KeywordService
from placetrack.services.notification_service import NotificationDeliveryService, NotificationSettingService
from placetrack.services.notification_trigger import NotificationTrigger
from placetrack.services.place_service import PlaceService, UserService
from placetrack.services.ranking_service import RankingService
from placetrack.services.review_service import ReviewHistoryService, ReviewService
from placetrack.services.scraper import ListingScraper, ObservedMetrics, ScrapedReview


@dataclass
class TrackingServices:
    users: UserService
    places: PlaceService
    keywords: KeywordService
    rankings: RankingService
    review_histories: ReviewHistoryService
    reviews: ReviewService
    competitors: CompetitorService
    notification_settings: NotificationSettingService
    notification_delivery: NotificationDeliveryService
    trigger: Optional[NotificationTrigger]


def build_services(
    db: Session,
    scraper: Optional[ListingScraper] = None,
    settings: Optional[Settings] = None,
    notify: bool = True,
) -> TrackingServices:
    """
    Wire every use case against one session.

    Args:
        db: Session of the current unit of work
        scraper: Used by the scrape_* operations; they fail with InvalidState without one
        settings: Overrides the module-level settings (limits, scrape size)
        notify: Wire the notification trigger into the record use cases
    """
    settings = settings or default_settings

    users = UserRepository(db, settings)
    places = PlaceRepository(db, settings)
    keywords = KeywordRepository(db, settings)
    place_keywords = PlaceKeywordRepository(db, settings)
    competitors = CompetitorRepository(db, settings)
    rankings = RankingHistoryRepository(db, settings)
    review_histories = ReviewHistoryRepository(db, settings)
    reviews = ReviewRepository(db, settings)
    snapshots = CompetitorSnapshotRepository(db, settings)
    notification_settings = NotificationSettingRepository(db, settings)
    notification_logs = NotificationLogRepository(db, settings)

    trigger = NotificationTrigger(notification_settings, notification_logs) if notify else None

    return TrackingServices(
        users=UserService(users),
        places=PlaceService(places, users),
        keywords=KeywordService(places, keywords, place_keywords),
        rankings=RankingService(place_keywords, rankings, trigger=trigger, scraper=scraper),
        review_histories=ReviewHistoryService(places, review_histories, trigger=trigger, scraper=scraper),
        reviews=ReviewService(places, reviews, scraper=scraper, settings=settings),
        competitors=CompetitorService(places, competitors, snapshots, trigger=trigger),
        notification_settings=NotificationSettingService(users, places, notification_settings, notification_logs),
        notification_delivery=NotificationDeliveryService(notification_logs),
        trigger=trigger,
    )


__all__ = [
    "CompetitorService",
    "KeywordService",
    "ListingScraper",
    "NotificationDeliveryService",
    "NotificationSettingService",
    "NotificationTrigger",
    "ObservedMetrics",
    "PlaceService",
    "RankingService",
    "ReviewHistoryService",
    "ReviewService",
    "ScrapedReview",
    "TrackingServices",
    "UserService",
    "build_services",
]
