"""Repositories over the SQLAlchemy session."""

from placetrack.repositories.base import BaseRepository, FactRepository
from placetrack.repositories.entities import (
    CompetitorRepository,
    KeywordRepository,
    PlaceKeywordRepository,
    PlaceRepository,
    UserRepository,
)
from placetrack.repositories.facts import (
    CompetitorSnapshotRepository,
    RankingHistoryRepository,
    ReviewHistoryRepository,
    ReviewRepository,
)
from placetrack.repositories.notifications import NotificationLogRepository, NotificationSettingRepository
