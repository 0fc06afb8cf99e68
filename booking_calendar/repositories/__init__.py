# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository layer for database operations."""

from booking_calendar.repositories.comment_repository import CommentRepository

__all__ = ["CommentRepository"]
