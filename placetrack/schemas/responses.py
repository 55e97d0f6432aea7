"""Response views and the projection functions that build them.

Relation fields (``place_name``, ``keyword_text``...) and computed fields
(``total_review_count``) are only *set* when requested. ``to_dict`` drops
unset fields, so a relation that was not requested is absent from the
output rather than ``None``.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from placetrack.models.competitor import Competitor, CompetitorSnapshot
from placetrack.models.keyword import Keyword, PlaceKeyword
from placetrack.models.notification import NotificationLog, NotificationSetting
from placetrack.models.place import Place
from placetrack.models.tracking import RankingHistory, Review, ReviewHistory, ReviewType, Sentiment
from placetrack.models.user import User


class View(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


def _region(stored: str) -> Optional[str]:
    return stored or None


def total_review_count(blog: Optional[int], visitor: Optional[int]) -> Optional[int]:
    """Sum of both counts, or None when either is unknown."""
    if blog is None or visitor is None:
        return None
    return blog + visitor


# ============== Users and places ==============

class UserView(View):
    id: str
    email: str
    name: str
    created_at: datetime
    updated_at: datetime


class PlaceView(View):
    id: str
    external_place_id: str
    name: str
    category: Optional[str] = None
    address: Optional[str] = None
    place_url: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    # Relations
    user_id: Optional[str] = None
    keyword_count: Optional[int] = None
    review_count: Optional[int] = None


class PlaceStatsView(View):
    total_places: int
    active_places: int
    inactive_places: int


def project_user(user: User) -> UserView:
    return UserView.model_validate(user)


def project_place(
    place: Place,
    include_relations: bool = False,
    keyword_count: Optional[int] = None,
    review_count: Optional[int] = None,
) -> PlaceView:
    data = dict(
        id=place.id,
        external_place_id=place.external_place_id,
        name=place.name,
        category=place.category,
        address=place.address,
        place_url=place.place_url,
        is_active=place.is_active,
        created_at=place.created_at,
        updated_at=place.updated_at,
    )
    if include_relations:
        data["user_id"] = place.user_id
        if keyword_count is not None:
            data["keyword_count"] = keyword_count
        if review_count is not None:
            data["review_count"] = review_count
    return PlaceView(**data)


def project_place_stats(total: int, active: int) -> PlaceStatsView:
    return PlaceStatsView(total_places=total, active_places=active, inactive_places=total - active)


# ============== Keywords ==============

class KeywordView(View):
    id: str
    keyword: str
    created_at: datetime


class PlaceKeywordView(View):
    id: str
    place_id: str
    keyword_id: str
    region: Optional[str] = None
    is_active: bool
    created_at: datetime
    # Relations
    place_name: Optional[str] = None
    keyword_text: Optional[str] = None


def project_keyword(keyword: Keyword) -> KeywordView:
    return KeywordView.model_validate(keyword)


def project_place_keyword(place_keyword: PlaceKeyword, include_relations: bool = False) -> PlaceKeywordView:
    data = dict(
        id=place_keyword.id,
        place_id=place_keyword.place_id,
        keyword_id=place_keyword.keyword_id,
        region=_region(place_keyword.region),
        is_active=place_keyword.is_active,
        created_at=place_keyword.created_at,
    )
    if include_relations:
        data["place_name"] = place_keyword.place.name
        data["keyword_text"] = place_keyword.keyword.keyword
    return PlaceKeywordView(**data)


# ============== Rankings ==============

class RankingView(View):
    id: str
    place_keyword_id: str
    rank: Optional[int] = None
    search_result_count: Optional[int] = None
    checked_at: datetime
    created_at: datetime
    # Relations
    place_name: Optional[str] = None
    keyword_text: Optional[str] = None
    region: Optional[str] = None


class ScrapeRankingView(View):
    place_keyword_id: str
    rank: Optional[int] = None
    search_result_count: Optional[int] = None
    found: bool
    checked_at: datetime
    ranking_history_id: str


def project_ranking(ranking: RankingHistory, include_relations: bool = False) -> RankingView:
    data = dict(
        id=ranking.id,
        place_keyword_id=ranking.place_keyword_id,
        rank=ranking.rank,
        search_result_count=ranking.search_result_count,
        checked_at=ranking.checked_at,
        created_at=ranking.created_at,
    )
    if include_relations:
        place_keyword = ranking.place_keyword
        data["place_name"] = place_keyword.place.name
        data["keyword_text"] = place_keyword.keyword.keyword
        data["region"] = _region(place_keyword.region)
    return RankingView(**data)


# ============== Review statistics and reviews ==============

class ReviewHistoryView(View):
    id: str
    place_id: str
    blog_review_count: int
    visitor_review_count: int
    average_rating: Optional[float] = None
    checked_at: datetime
    created_at: datetime
    # Computed
    total_review_count: Optional[int] = None


def project_review_history(history: ReviewHistory, include_computed: bool = False) -> ReviewHistoryView:
    data = dict(
        id=history.id,
        place_id=history.place_id,
        blog_review_count=history.blog_review_count,
        visitor_review_count=history.visitor_review_count,
        average_rating=history.average_rating,
        checked_at=history.checked_at,
        created_at=history.created_at,
    )
    if include_computed:
        total = total_review_count(history.blog_review_count, history.visitor_review_count)
        if total is not None:
            data["total_review_count"] = total
    return ReviewHistoryView(**data)


class ReviewView(View):
    id: str
    place_id: str
    external_review_id: Optional[str] = None
    review_type: ReviewType
    content: Optional[str] = None
    rating: Optional[int] = None
    author: Optional[str] = None
    sentiment: Optional[Sentiment] = None
    sentiment_score: Optional[float] = None
    published_at: Optional[datetime] = None
    created_at: datetime


class ScrapeReviewsView(View):
    place_id: str
    scraped_count: int
    saved_count: int
    duplicate_count: int
    failed_count: int
    execution_time_ms: int
    scraped_at: datetime


def project_review(review: Review) -> ReviewView:
    return ReviewView.model_validate(review)


# ============== Competitors ==============

class CompetitorView(View):
    id: str
    place_id: str
    competitor_external_id: str
    competitor_name: str
    category: Optional[str] = None
    is_active: bool
    created_at: datetime
    # Relations
    place_name: Optional[str] = None


class CompetitorSnapshotView(View):
    id: str
    competitor_id: str
    rank: Optional[int] = None
    blog_review_count: Optional[int] = None
    visitor_review_count: Optional[int] = None
    average_rating: Optional[float] = None
    checked_at: datetime
    created_at: datetime
    # Computed
    total_review_count: Optional[int] = None
    # Relations
    competitor_name: Optional[str] = None
    category: Optional[str] = None


def project_competitor(competitor: Competitor, include_relations: bool = False) -> CompetitorView:
    data = dict(
        id=competitor.id,
        place_id=competitor.place_id,
        competitor_external_id=competitor.competitor_external_id,
        competitor_name=competitor.competitor_name,
        category=competitor.category,
        is_active=competitor.is_active,
        created_at=competitor.created_at,
    )
    if include_relations:
        data["place_name"] = competitor.place.name
    return CompetitorView(**data)


def project_competitor_snapshot(
    snapshot: CompetitorSnapshot,
    include_computed: bool = False,
    include_relations: bool = False,
) -> CompetitorSnapshotView:
    data = dict(
        id=snapshot.id,
        competitor_id=snapshot.competitor_id,
        rank=snapshot.rank,
        blog_review_count=snapshot.blog_review_count,
        visitor_review_count=snapshot.visitor_review_count,
        average_rating=snapshot.average_rating,
        checked_at=snapshot.checked_at,
        created_at=snapshot.created_at,
    )
    if include_computed:
        total = total_review_count(snapshot.blog_review_count, snapshot.visitor_review_count)
        if total is not None:
            data["total_review_count"] = total
    if include_relations:
        data["competitor_name"] = snapshot.competitor.competitor_name
        data["category"] = snapshot.competitor.category
    return CompetitorSnapshotView(**data)


# ============== Notifications ==============

class NotificationSettingView(View):
    id: str
    user_id: str
    place_id: Optional[str] = None
    notification_type: str
    channel: str
    is_enabled: bool
    conditions: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime
    # Relations
    place_name: Optional[str] = None


class NotificationLogView(View):
    id: str
    notification_setting_id: str
    place_id: str
    notification_type: str
    channel: str
    message: str
    is_sent: bool
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None
    created_at: datetime
    # Relations
    place_name: Optional[str] = None


def project_notification_setting(
    setting: NotificationSetting, include_relations: bool = False
) -> NotificationSettingView:
    data = dict(
        id=setting.id,
        user_id=setting.user_id,
        place_id=setting.place_id,
        notification_type=setting.notification_type,
        channel=setting.channel,
        is_enabled=setting.is_enabled,
        conditions=setting.conditions,
        created_at=setting.created_at,
        updated_at=setting.updated_at,
    )
    if include_relations and setting.place_id is not None:
        data["place_name"] = setting.place.name
    return NotificationSettingView(**data)


def project_notification_log(log: NotificationLog, include_relations: bool = False) -> NotificationLogView:
    data = dict(
        id=log.id,
        notification_setting_id=log.notification_setting_id,
        place_id=log.place_id,
        notification_type=log.notification_type,
        channel=log.channel,
        message=log.message,
        is_sent=log.is_sent,
        sent_at=log.sent_at,
        error_message=log.error_message,
        created_at=log.created_at,
    )
    if include_relations:
        data["place_name"] = log.place.name
    return NotificationLogView(**data)
