# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Business logic for booking and day comments."""

import logging
import re
import secrets
import string
import time
from collections.abc import Sequence
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from booking_calendar.models.comment import (
    AUTHOR_ROLES,
    DAY_COMMENT_PREFIX,
    FONT_SIZES,
    DayComment,
)
from booking_calendar.models.reservation import ApartmentCalendar
from booking_calendar.repositories.comment_repository import CommentRepository
from booking_calendar.services.calendar_service import month_bounds

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


class CommentValidationError(Exception):
    """Exception raised when comment input is invalid."""

    pass


class CommentNotFoundError(Exception):
    """Exception raised when a comment does not exist."""

    pass


class MigrationError(Exception):
    """Exception raised when a legacy comment import is rejected."""

    pass


def generate_day_booking_id(day: date, apartment_name: str) -> str:
    """Build the booking id used for a note on a single calendar day.

    Args:
        day: Calendar day.
        apartment_name: Apartment name; whitespace runs become ``_``.

    Returns:
        Key of the form ``DAY_YYYY-MM-DD_Apartment_Name``.
    """
    return f"{DAY_COMMENT_PREFIX}{day.isoformat()}_{re.sub(r'\s+', '_', apartment_name)}"


def parse_day_booking_id(booking_id: str) -> date | None:
    """Extract the date encoded in a day comment key, if any."""
    if not booking_id.startswith(DAY_COMMENT_PREFIX):
        return None
    raw = booking_id[len(DAY_COMMENT_PREFIX) : len(DAY_COMMENT_PREFIX) + 10]
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def new_comment_id() -> str:
    """Generate a comment id of the form ``comment_{ms}_{random9}``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"comment_{int(time.time() * 1000)}_{suffix}"


def _validate_font_size(font_size: str) -> None:
    if font_size not in FONT_SIZES:
        msg = "Invalid font size. Must be one of: small, medium, large"
        raise CommentValidationError(msg)


def _validate_author(created_by: str) -> None:
    if created_by not in AUTHOR_ROLES:
        msg = "Invalid author role. Must be one of: owner, staff"
        raise CommentValidationError(msg)


def _require_text(text: str) -> str:
    stripped = text.strip()
    if not stripped:
        msg = "Comment text must not be empty"
        raise CommentValidationError(msg)
    return stripped


def _parse_legacy_timestamp(value: Any) -> datetime:
    """Parse a legacy ISO timestamp, falling back to now."""
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Invalid legacy timestamp %r, using current time", value)
        else:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return datetime.now(UTC)


class CommentService:
    """Comment operations on top of CommentRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service with a database session."""
        self._repo = CommentRepository(session)

    async def list_comments(
        self,
        booking_ids: Sequence[str] | None = None,
        apartment_name: str | None = None,
    ) -> Sequence[DayComment]:
        """List comments by booking ids, else by apartment, else all.

        Args:
            booking_ids: Booking ids or day keys to match.
            apartment_name: Apartment filter, used only without booking ids.

        Returns:
            Matching comments.
        """
        if booking_ids:
            return await self._repo.get_for_booking_ids(
                [booking_id.strip() for booking_id in booking_ids]
            )
        if apartment_name:
            return await self._repo.get_for_apartment(apartment_name)
        return await self._repo.get_all()

    async def upsert(
        self,
        booking_id: str,
        apartment_name: str,
        comment_date: str,
        text: str,
        font_size: str,
        created_by: str,
    ) -> tuple[DayComment, bool]:
        """Create the comment for a booking, or replace its content.

        An existing comment keeps its id and ``created_at``.

        Returns:
            Tuple of (comment, created) where created is True for inserts.

        Raises:
            CommentValidationError: If any field is missing or invalid.
        """
        if not all((booking_id, apartment_name, comment_date, text)):
            msg = "Missing required fields: bookingId, apartmentName, date, text"
            raise CommentValidationError(msg)
        _validate_font_size(font_size)
        _validate_author(created_by)
        body = _require_text(text)

        existing = await self._repo.get_by_booking_id(booking_id)
        if existing is not None:
            existing.apartment_name = apartment_name
            existing.date = comment_date
            existing.text = body
            existing.font_size = font_size
            existing.created_by = created_by
            updated = await self._repo.update(existing)
            logger.info("Updated comment %s for %s", updated.id, booking_id)
            return updated, False

        comment = DayComment(
            id=new_comment_id(),
            booking_id=booking_id,
            apartment_name=apartment_name,
            date=comment_date,
            text=body,
            font_size=font_size,
            created_by=created_by,
        )
        created = await self._repo.create(comment)
        logger.info("Created comment %s for %s", created.id, booking_id)
        return created, True

    async def update(self, comment_id: str, text: str, font_size: str) -> DayComment:
        """Change the text and font size of a comment.

        Raises:
            CommentValidationError: If text or font size is invalid.
            CommentNotFoundError: If the id does not exist.
        """
        _validate_font_size(font_size)
        body = _require_text(text)

        comment = await self._repo.get_by_id(comment_id)
        if comment is None:
            msg = f"Comment not found: {comment_id}"
            raise CommentNotFoundError(msg)

        comment.text = body
        comment.font_size = font_size
        return await self._repo.update(comment)

    async def delete_by_booking_id(self, booking_id: str) -> DayComment:
        """Delete the comment attached to a booking.

        Returns:
            The deleted comment.

        Raises:
            CommentNotFoundError: If the booking has no comment.
        """
        comment = await self._repo.get_by_booking_id(booking_id)
        if comment is None:
            msg = f"No comment found for booking: {booking_id}"
            raise CommentNotFoundError(msg)
        await self._repo.delete(comment)
        logger.info("Deleted comment %s for %s", comment.id, booking_id)
        return comment

    async def month_day_comments(
        self, apartment_name: str, year: int, month: int
    ) -> Sequence[DayComment]:
        """Day-level comments of an apartment whose key date is in the month."""
        first, last = month_bounds(year, month)
        return await self._repo.get_day_comments_in_range(
            apartment_name, first.isoformat(), last.isoformat()
        )

    async def calendar_comments(self, calendar: ApartmentCalendar) -> list[DayComment]:
        """Booking and day comments to print on an apartment's month."""
        booking_ids = {
            touch.reservation.id for day in calendar.days for touch in day.reservations
        }
        booking_comments = await self._repo.get_for_booking_ids(sorted(booking_ids))
        day_comments = await self.month_day_comments(
            calendar.apartment_name, calendar.year, calendar.month
        )
        return [*booking_comments, *day_comments]

    async def migration_status(self) -> int:
        """Number of stored comments."""
        return await self._repo.count()

    async def migrate(
        self, legacy: Any, confirm_migration: bool
    ) -> tuple[list[DayComment], int]:
        """Import a legacy JSON array of comments into an empty store.

        Args:
            legacy: Decoded JSON array of legacy comment objects.
            confirm_migration: Must be True for anything to be written.

        Returns:
            Tuple of (imported comments, existing count). When the store
            already holds comments nothing is imported and the list is empty.

        Raises:
            MigrationError: If confirmation or data is missing, or an entry
                lacks required fields.
        """
        existing = await self._repo.count()
        if existing > 0:
            logger.info("Comment migration skipped, %d comments present", existing)
            return [], existing

        if not confirm_migration:
            msg = "Migration confirmation required. Set confirmMigration: true"
            raise MigrationError(msg)
        if not isinstance(legacy, list):
            msg = "Migration data required. Provide comments array in request body"
            raise MigrationError(msg)

        comments: list[DayComment] = []
        seen: set[str] = set()
        for index, item in enumerate(legacy):
            if not isinstance(item, dict) or not all(
                item.get(key) for key in ("id", "bookingId", "apartmentName", "text")
            ):
                msg = f"Invalid comment structure at index {index}: missing required fields"
                raise MigrationError(msg)
            font_size = item.get("fontSize") or "medium"
            created_by = item.get("createdBy") or "owner"
            if font_size not in FONT_SIZES or created_by not in AUTHOR_ROLES:
                msg = f"Invalid comment structure at index {index}: bad fontSize or createdBy"
                raise MigrationError(msg)
            if item["bookingId"] in seen:
                msg = f"Duplicate bookingId at index {index}: {item['bookingId']}"
                raise MigrationError(msg)
            seen.add(item["bookingId"])
            comments.append(
                DayComment(
                    id=str(item["id"]),
                    booking_id=str(item["bookingId"]),
                    apartment_name=str(item["apartmentName"]),
                    date=str(item.get("date") or "")[:10],
                    text=str(item["text"]),
                    font_size=font_size,
                    created_by=created_by,
                    created_at=_parse_legacy_timestamp(item.get("createdAt")),
                    updated_at=_parse_legacy_timestamp(item.get("updatedAt")),
                )
            )

        await self._repo.add_all(comments)
        logger.info("Migrated %d legacy comments", len(comments))
        return comments, 0
