"""Competitor and CompetitorSnapshot models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from placetrack.db.base import Base, CreatedAtMixin, IdMixin, UTCDateTime


class Competitor(Base, IdMixin, CreatedAtMixin):
    """A rival listing tracked against a place."""

    __tablename__ = "competitors"
    __table_args__ = (
        UniqueConstraint("place_id", "competitor_external_id", name="uq_competitor_place_external"),
    )

    place_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("places.id", ondelete="CASCADE"), nullable=False, index=True
    )
    competitor_external_id: Mapped[str] = mapped_column(String(100), nullable=False)
    competitor_name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    place: Mapped["Place"] = relationship("Place", lazy="raise_on_sql")


class CompetitorSnapshot(Base, IdMixin, CreatedAtMixin):
    """Immutable observation of a competitor's metrics."""

    __tablename__ = "competitor_snapshots"
    __table_args__ = (
        Index("idx_competitor_snapshots_competitor_checked", "competitor_id", "checked_at"),
    )

    competitor_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("competitors.id", ondelete="CASCADE"), nullable=False
    )
    rank: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    blog_review_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    visitor_review_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    average_rating: Mapped[Optional[float]] = mapped_column(Numeric(2, 1, asdecimal=False), nullable=True)
    checked_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    # Relationships
    competitor: Mapped["Competitor"] = relationship("Competitor", lazy="raise_on_sql")


# Forward references
from placetrack.models.place import Place  # noqa: E402
