"""Keyword and PlaceKeyword models."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from placetrack.db.base import Base, CreatedAtMixin, IdMixin


def normalize_keyword(text: str) -> str:
    """Canonical form used for keyword deduplication."""
    return " ".join(text.split()).lower()


def normalize_region(region: str | None) -> str:
    """Absent and blank regions are stored as the empty string."""
    if region is None:
        return ""
    return region.strip()


class Keyword(Base, IdMixin, CreatedAtMixin):
    """A search term, globally deduplicated by normalized text."""

    __tablename__ = "keywords"

    keyword: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)


class PlaceKeyword(Base, IdMixin, CreatedAtMixin):
    """Tracked (place, keyword, region) pairing."""

    __tablename__ = "place_keywords"
    __table_args__ = (
        UniqueConstraint("place_id", "keyword_id", "region", name="uq_place_keyword_region"),
    )

    place_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("places.id", ondelete="CASCADE"), nullable=False, index=True
    )
    keyword_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("keywords.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Never NULL: the unique constraint must treat "no region" as one value
    region: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    place: Mapped["Place"] = relationship("Place", lazy="raise_on_sql")
    keyword: Mapped["Keyword"] = relationship("Keyword", lazy="raise_on_sql")


# Forward references
from placetrack.models.place import Place  # noqa: E402
