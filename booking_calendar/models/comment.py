# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""DayComment model for notes attached to bookings and calendar days."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from booking_calendar.database import Base

FONT_SIZES = ("small", "medium", "large")
AUTHOR_ROLES = ("owner", "staff")

DAY_COMMENT_PREFIX = "DAY_"


def _utc_now() -> datetime:
    """Get current UTC datetime for SQLAlchemy defaults."""
    return datetime.now(UTC)


class DayComment(Base):
    """Free-text note shown on the printed calendar.

    ``booking_id`` is either a reservation id (the note follows that
    booking) or a ``DAY_{date}_{apartment}`` key for a note on one day.
    """

    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    apartment_name: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    font_size: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    created_by: Mapped[str] = mapped_column(String(10), nullable=False, default="owner")
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now, onupdate=_utc_now
    )

    __table_args__ = (Index("idx_comment_apartment", "apartment_name"),)

    @property
    def is_day_comment(self) -> bool:
        """Whether this note belongs to a calendar day rather than a booking."""
        return self.booking_id.startswith(DAY_COMMENT_PREFIX)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<DayComment(id={self.id}, booking_id={self.booking_id})>"
