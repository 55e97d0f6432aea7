"""Notification settings and logs."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from placetrack.db.base import Base, CreatedAtMixin, IdMixin, TimestampMixin, UTCDateTime


class NotificationType(str, enum.Enum):
    """Fact kind a setting listens to."""

    RANKING = "RANKING"
    REVIEW = "REVIEW"
    COMPETITOR = "COMPETITOR"


class NotificationSetting(Base, IdMixin, TimestampMixin):
    """A user's subscription to changes of one fact kind.

    ``place_id`` None means the setting covers every place the user owns.
    ``conditions`` maps a condition key such as ``rank_above`` to its threshold.
    """

    __tablename__ = "notification_settings"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    place_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("places.id", ondelete="CASCADE"), nullable=True, index=True
    )
    notification_type: Mapped[str] = mapped_column(String(50), nullable=False)
    channel: Mapped[str] = mapped_column(String(20), nullable=False)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    conditions: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # Relationships
    place: Mapped[Optional["Place"]] = relationship("Place", lazy="raise_on_sql")


class NotificationLog(Base, IdMixin, CreatedAtMixin):
    """Record of one notification attempt.

    Created unsent; the delivery collaborator later sets ``is_sent``/``sent_at``
    or ``error_message``.
    """

    __tablename__ = "notification_logs"

    notification_setting_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("notification_settings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    place_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("places.id", ondelete="CASCADE"), nullable=False, index=True
    )
    notification_type: Mapped[str] = mapped_column(String(50), nullable=False)
    channel: Mapped[str] = mapped_column(String(20), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sent_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    place: Mapped["Place"] = relationship("Place", lazy="raise_on_sql")


# Forward references
from placetrack.models.place import Place  # noqa: E402
