"""Place model."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from placetrack.db.base import Base, IdMixin, TimestampMixin


class Place(Base, IdMixin, TimestampMixin):
    """A monitored online listing.

    ``is_active`` is the gating flag for recording review facts against the
    place; deactivating keeps all recorded history intact.
    """

    __tablename__ = "places"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    external_place_id: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    place_url: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship("User", lazy="raise_on_sql")

    def __repr__(self) -> str:
        return f"<Place(id={self.id!r}, name={self.name!r}, is_active={self.is_active})>"


# Forward references
from placetrack.models.user import User  # noqa: E402
