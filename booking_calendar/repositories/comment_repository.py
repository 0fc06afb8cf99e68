# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for DayComment database operations."""

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_calendar.models.comment import DAY_COMMENT_PREFIX, DayComment


class CommentRepository:
    """Repository for DayComment CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, comment_id: str) -> DayComment | None:
        """Get comment by ID.

        Args:
            comment_id: Comment primary key.

        Returns:
            DayComment if found, None otherwise.
        """
        result = await self._session.execute(
            select(DayComment).where(DayComment.id == comment_id)
        )
        return result.scalar_one_or_none()

    async def get_by_booking_id(self, booking_id: str) -> DayComment | None:
        """Get the comment attached to a booking or day key.

        Args:
            booking_id: Reservation id or ``DAY_`` key.

        Returns:
            DayComment if found, None otherwise.
        """
        result = await self._session.execute(
            select(DayComment).where(DayComment.booking_id == booking_id)
        )
        return result.scalar_one_or_none()

    async def get_all(self) -> Sequence[DayComment]:
        """Get all comments ordered by date."""
        result = await self._session.execute(
            select(DayComment).order_by(DayComment.date, DayComment.created_at)
        )
        return result.scalars().all()

    async def get_for_booking_ids(
        self, booking_ids: Iterable[str]
    ) -> Sequence[DayComment]:
        """Get comments for a set of booking ids.

        Args:
            booking_ids: Reservation ids and/or ``DAY_`` keys.

        Returns:
            Matching comments ordered by date.
        """
        ids = list(booking_ids)
        if not ids:
            return []
        result = await self._session.execute(
            select(DayComment)
            .where(DayComment.booking_id.in_(ids))
            .order_by(DayComment.date)
        )
        return result.scalars().all()

    async def get_for_apartment(self, apartment_name: str) -> Sequence[DayComment]:
        """Get all comments for an apartment ordered by date."""
        result = await self._session.execute(
            select(DayComment)
            .where(DayComment.apartment_name == apartment_name)
            .order_by(DayComment.date)
        )
        return result.scalars().all()

    async def get_day_comments_in_range(
        self, apartment_name: str, start: str, end: str
    ) -> Sequence[DayComment]:
        """Get day-level comments of an apartment between two ISO dates.

        The date is read from the ``DAY_{date}_`` key rather than the
        ``date`` column, which older clients sometimes stored one day off.

        Args:
            apartment_name: Apartment name.
            start: First ISO date (inclusive).
            end: Last ISO date (inclusive).

        Returns:
            Matching day comments ordered by key.
        """
        key_date = func.substr(DayComment.booking_id, len(DAY_COMMENT_PREFIX) + 1, 10)
        result = await self._session.execute(
            select(DayComment)
            .where(
                DayComment.apartment_name == apartment_name,
                DayComment.booking_id.startswith(DAY_COMMENT_PREFIX),
                key_date >= start,
                key_date <= end,
            )
            .order_by(DayComment.booking_id)
        )
        return result.scalars().all()

    async def count(self) -> int:
        """Count stored comments."""
        result = await self._session.execute(select(func.count(DayComment.id)))
        return int(result.scalar_one())

    async def create(self, comment: DayComment) -> DayComment:
        """Create a new comment.

        Args:
            comment: DayComment entity to create.

        Returns:
            Created comment.
        """
        self._session.add(comment)
        await self._session.flush()
        await self._session.refresh(comment)
        return comment

    async def update(self, comment: DayComment) -> DayComment:
        """Persist changes to an existing comment.

        Args:
            comment: DayComment entity with updates.

        Returns:
            Updated comment.
        """
        comment.updated_at = datetime.now(UTC)
        await self._session.flush()
        await self._session.refresh(comment)
        return comment

    async def delete(self, comment: DayComment) -> None:
        """Delete a comment.

        Args:
            comment: DayComment entity to delete.
        """
        await self._session.delete(comment)
        await self._session.flush()

    async def add_all(self, comments: Iterable[DayComment]) -> int:
        """Insert several comments at once.

        Returns:
            Number of comments inserted.
        """
        items = list(comments)
        self._session.add_all(items)
        await self._session.flush()
        return len(items)
