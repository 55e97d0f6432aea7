"""Command and query models for the tracking use cases.

Shape is checked here, once, before a use case runs. Use cases only check
business state (existence, active flags, uniqueness).
"""

from collections import defaultdict
from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Optional, Type, TypeVar, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from placetrack.core.config import Settings, settings as default_settings
from placetrack.core.errors import ValidationFailed
from placetrack.db.base import as_utc
from placetrack.models.notification import NotificationType
from placetrack.models.tracking import ReviewType, Sentiment

CommandT = TypeVar("CommandT", bound=BaseModel)

# Aware UTC; naive input is taken as UTC
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class Command(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


def validate_command(
    model: Type[CommandT],
    payload: Union[CommandT, Dict[str, Any]],
    settings: Optional[Settings] = None,
) -> CommandT:
    """Build ``model`` from ``payload`` or raise ``ValidationFailed``.

    ``settings`` supplies configured bounds such as ``max_history_limit``.

    Details group pydantic's messages per field:
    ``[{"field": "rank", "errors": ["Input should be greater than or equal to 1"]}]``.
    """
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload, context={"settings": settings or default_settings})
    except ValidationError as e:
        grouped = defaultdict(list)
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]) or "non_field"
            grouped[field].append(error["msg"])
        details = [{"field": field, "errors": messages} for field, messages in grouped.items()]
        raise ValidationFailed(f"Invalid {model.__name__}", details=details) from e


def check_history_limit(limit: Optional[int], info: ValidationInfo) -> Optional[int]:
    settings = (info.context or {}).get("settings") or default_settings
    if limit is not None and limit > settings.max_history_limit:
        raise ValueError(f"must not exceed {settings.max_history_limit}")
    return limit


# Capped by the configured max_history_limit
HistoryLimit = Annotated[Optional[int], Field(ge=1), AfterValidator(check_history_limit)]


class HistoryQuery(Command):
    """Either an inclusive date range or the most recent ``limit`` rows."""

    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    limit: HistoryLimit = None

    @model_validator(mode="after")
    def check_range(self):
        if (self.start_date is None) != (self.end_date is None):
            raise ValueError("start_date and end_date must be given together")
        if self.start_date is not None and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

    @property
    def has_range(self) -> bool:
        return self.start_date is not None


# ============== Users and places ==============

class UserCreate(Command):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    name: str = Field(..., min_length=1, max_length=100)


class PlaceCreate(Command):
    user_id: str = Field(..., min_length=1, max_length=36)
    external_place_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = None
    place_url: str = Field(..., min_length=1)


class PlaceUpdate(Command):
    """Partial update; only the fields that were set are applied."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = None
    place_url: Optional[str] = Field(default=None, min_length=1)

    @field_validator("name", "place_url")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v


class PlaceListQuery(Command):
    user_id: str = Field(..., min_length=1, max_length=36)
    page: int = Field(default=1, ge=1)
    limit: Optional[int] = Field(default=None, ge=1, le=100, description="Defaults to default_page_size")
    sort_by: Literal["created_at", "updated_at", "name"] = "created_at"
    sort_order: Literal["ASC", "DESC"] = "DESC"
    active_only: bool = False

    @field_validator("sort_order", mode="before")
    @classmethod
    def upper_sort_order(cls, v):
        return v.upper() if isinstance(v, str) else v


# ============== Keywords ==============

class PlaceKeywordCreate(Command):
    place_id: str = Field(..., min_length=1, max_length=36)
    keyword: str = Field(..., min_length=1, max_length=100)
    region: Optional[str] = Field(default=None, max_length=100)


# ============== Rankings ==============

class RankingRecord(Command):
    place_keyword_id: str = Field(..., min_length=1, max_length=36)
    rank: Optional[int] = Field(default=None, ge=1, description="None when not found in results")
    search_result_count: Optional[int] = Field(default=None, ge=0)
    checked_at: UtcDatetime


class RankingHistoryQuery(HistoryQuery):
    place_keyword_id: str = Field(..., min_length=1, max_length=36)


# ============== Review statistics ==============

class ReviewHistoryRecord(Command):
    place_id: str = Field(..., min_length=1, max_length=36)
    blog_review_count: int = Field(..., ge=0)
    visitor_review_count: int = Field(..., ge=0)
    average_rating: Optional[float] = Field(default=None, ge=0, le=5)
    checked_at: UtcDatetime


class ReviewHistoryQuery(HistoryQuery):
    place_id: str = Field(..., min_length=1, max_length=36)


# ============== Reviews ==============

class ReviewRecord(Command):
    place_id: str = Field(..., min_length=1, max_length=36)
    external_review_id: Optional[str] = Field(default=None, max_length=100)
    review_type: ReviewType
    content: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    author: Optional[str] = Field(default=None, max_length=100)
    sentiment: Optional[Sentiment] = None
    sentiment_score: Optional[float] = Field(default=None, ge=-1, le=1)
    published_at: Optional[UtcDatetime] = None

    @model_validator(mode="after")
    def score_with_sentiment(self):
        if self.sentiment is not None and self.sentiment_score is None:
            raise ValueError("sentiment_score is required when sentiment is given")
        return self


class ReviewQuery(Command):
    place_id: str = Field(..., min_length=1, max_length=36)
    sentiment: Optional[Sentiment] = None
    review_type: Optional[ReviewType] = None
    published_after: Optional[UtcDatetime] = None
    limit: HistoryLimit = None


# ============== Competitors ==============

class CompetitorCreate(Command):
    place_id: str = Field(..., min_length=1, max_length=36)
    competitor_external_id: str = Field(..., min_length=1, max_length=100)
    competitor_name: str = Field(..., min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, max_length=50)


class CompetitorSnapshotRecord(Command):
    competitor_id: str = Field(..., min_length=1, max_length=36)
    rank: Optional[int] = Field(default=None, ge=1)
    blog_review_count: Optional[int] = Field(default=None, ge=0)
    visitor_review_count: Optional[int] = Field(default=None, ge=0)
    average_rating: Optional[float] = Field(default=None, ge=0, le=5)
    checked_at: UtcDatetime


class CompetitorHistoryQuery(HistoryQuery):
    competitor_id: str = Field(..., min_length=1, max_length=36)


# ============== Notifications ==============

class NotificationSettingCreate(Command):
    user_id: str = Field(..., min_length=1, max_length=36)
    place_id: Optional[str] = Field(default=None, max_length=36)
    notification_type: NotificationType
    channel: str = Field(..., min_length=1, max_length=20)
    is_enabled: bool = True
    conditions: Optional[Dict[str, Any]] = None


class NotificationSettingUpdate(Command):
    notification_type: Optional[NotificationType] = None
    channel: Optional[str] = Field(default=None, min_length=1, max_length=20)
    is_enabled: Optional[bool] = None
    conditions: Optional[Dict[str, Any]] = None

    @field_validator("notification_type", "channel", "is_enabled")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v
