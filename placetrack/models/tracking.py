"""Time-series fact models: rankings, review statistics and reviews.

Facts are append-only. Each carries the observation timestamp reported by
the scraper (``checked_at`` / ``published_at``) and the insertion timestamp
``created_at`` used as the tie-break.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from placetrack.db.base import Base, CreatedAtMixin, IdMixin, UTCDateTime


class ReviewType(str, enum.Enum):
    BLOG = "BLOG"
    VISITOR = "VISITOR"
    OTHER = "OTHER"


class Sentiment(str, enum.Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


class RankingHistory(Base, IdMixin, CreatedAtMixin):
    """Search rank of a place for one tracked keyword at one point in time.

    ``rank`` is None when the place was not found in the results.
    """

    __tablename__ = "ranking_histories"
    __table_args__ = (
        Index("idx_ranking_histories_place_keyword_checked", "place_keyword_id", "checked_at"),
    )

    place_keyword_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("place_keywords.id", ondelete="CASCADE"), nullable=False
    )
    rank: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    search_result_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    checked_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)

    # Relationships
    place_keyword: Mapped["PlaceKeyword"] = relationship("PlaceKeyword", lazy="raise_on_sql")


class ReviewHistory(Base, IdMixin, CreatedAtMixin):
    """Review volume snapshot for a place."""

    __tablename__ = "review_histories"
    __table_args__ = (
        Index("idx_review_histories_place_checked", "place_id", "checked_at"),
        CheckConstraint("blog_review_count >= 0", name="ck_review_histories_blog_non_negative"),
        CheckConstraint("visitor_review_count >= 0", name="ck_review_histories_visitor_non_negative"),
    )

    place_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("places.id", ondelete="CASCADE"), nullable=False
    )
    blog_review_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    visitor_review_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    average_rating: Mapped[Optional[float]] = mapped_column(Numeric(2, 1, asdecimal=False), nullable=True)
    checked_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    # Relationships
    place: Mapped["Place"] = relationship("Place", lazy="raise_on_sql")


class Review(Base, IdMixin, CreatedAtMixin):
    """An individual review left on a place."""

    __tablename__ = "reviews"

    place_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("places.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Deduplication key when present; NULLs are not compared
    external_review_id: Mapped[Optional[str]] = mapped_column(String(100), unique=True, nullable=True)
    review_type: Mapped[ReviewType] = mapped_column(Enum(ReviewType, native_enum=False, length=20), nullable=False)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    author: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    sentiment: Mapped[Optional[Sentiment]] = mapped_column(
        Enum(Sentiment, native_enum=False, length=20), nullable=True, index=True
    )
    sentiment_score: Mapped[Optional[float]] = mapped_column(Numeric(3, 2, asdecimal=False), nullable=True)
    published_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True, index=True)

    # Relationships
    place: Mapped["Place"] = relationship("Place", lazy="raise_on_sql")


# Forward references
from placetrack.models.keyword import PlaceKeyword  # noqa: E402
from placetrack.models.place import Place  # noqa: E402
