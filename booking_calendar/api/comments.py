# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Comment CRUD and legacy migration endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from booking_calendar.api.dependencies import require_comments_enabled
from booking_calendar.database import get_db
from booking_calendar.middleware.auth import require_owner
from booking_calendar.models.comment import DayComment
from booking_calendar.services.comment_service import (
    CommentNotFoundError,
    CommentService,
    CommentValidationError,
    MigrationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/comments",
    tags=["Comments"],
    dependencies=[Depends(require_comments_enabled)],
)


class CommentUpsertRequest(BaseModel):
    """Request model for creating or replacing a booking's comment."""

    model_config = ConfigDict(populate_by_name=True)

    booking_id: str = Field(alias="bookingId", description="Booking id or DAY_ key")
    apartment_name: str = Field(alias="apartmentName", description="Apartment name")
    date: str = Field(description="Date as YYYY-MM-DD")
    text: str = Field(description="Comment text")
    font_size: str = Field(alias="fontSize", description="small, medium or large")
    created_by: str = Field(alias="createdBy", description="owner or staff")


class CommentUpdateRequest(BaseModel):
    """Request model for editing a comment."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Comment id")
    text: str = Field(description="New text")
    font_size: str = Field(alias="fontSize", description="small, medium or large")


class MigrationRequest(BaseModel):
    """Request model for importing legacy comments."""

    model_config = ConfigDict(populate_by_name=True)

    comments: list[Any] | None = Field(default=None, description="Legacy comments")
    confirm_migration: bool = Field(
        default=False, alias="confirmMigration", description="Must be true"
    )


def _comment_to_response(comment: DayComment) -> dict[str, Any]:
    """Convert comment model to response dict."""
    return {
        "id": comment.id,
        "bookingId": comment.booking_id,
        "apartmentName": comment.apartment_name,
        "date": comment.date,
        "text": comment.text,
        "fontSize": comment.font_size,
        "createdBy": comment.created_by,
        "createdAt": comment.created_at.isoformat() if comment.created_at else None,
        "updatedAt": comment.updated_at.isoformat() if comment.updated_at else None,
    }


@router.get("")
async def list_comments(
    db: Annotated[AsyncSession, Depends(get_db)],
    booking_ids: Annotated[str | None, Query(alias="bookingIds")] = None,
    apartment_name: Annotated[str | None, Query(alias="apartmentName")] = None,
) -> dict[str, Any]:
    """List comments by ``|``-separated booking ids, else by apartment."""
    ids = [i for i in booking_ids.split("|") if i.strip()] if booking_ids else None
    comments = await CommentService(db).list_comments(ids, apartment_name)
    return {
        "comments": [_comment_to_response(c) for c in comments],
        "count": len(comments),
    }


@router.post("", dependencies=[Depends(require_owner)])
async def upsert_comment(
    body: CommentUpsertRequest,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    """Create a booking's comment (201) or replace it (200).

    Raises:
        HTTPException: 400 for invalid input.
    """
    try:
        comment, created = await CommentService(db).upsert(
            booking_id=body.booking_id,
            apartment_name=body.apartment_name,
            comment_date=body.date,
            text=body.text,
            font_size=body.font_size,
            created_by=body.created_by,
        )
    except CommentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return {
        "comment": _comment_to_response(comment),
        "message": "Comment created" if created else "Comment updated",
    }


@router.put("", dependencies=[Depends(require_owner)])
async def update_comment(
    body: CommentUpdateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    """Edit the text and font size of a comment.

    Raises:
        HTTPException: 400 for invalid input, 404 if the id is unknown.
    """
    try:
        comment = await CommentService(db).update(body.id, body.text, body.font_size)
    except CommentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except CommentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return {"comment": _comment_to_response(comment), "message": "Comment updated"}


@router.delete("", dependencies=[Depends(require_owner)])
async def delete_comment(
    db: Annotated[AsyncSession, Depends(get_db)],
    booking_id: Annotated[str, Query(alias="bookingId", min_length=1)],
) -> dict[str, Any]:
    """Delete the comment attached to a booking.

    Raises:
        HTTPException: 404 if the booking has no comment.
    """
    try:
        comment = await CommentService(db).delete_by_booking_id(booking_id)
    except CommentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return {"comment": _comment_to_response(comment), "message": "Comment deleted"}


@router.get("/migrate")
async def migration_status(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    """Report whether the store is still empty."""
    count = await CommentService(db).migration_status()
    return {"commentsCount": count, "migrationRequired": count == 0}


@router.post("/migrate", dependencies=[Depends(require_owner)])
async def migrate_comments(
    body: MigrationRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    """Import a legacy JSON array of comments into an empty store.

    Raises:
        HTTPException: 400 if confirmation or data is missing or invalid.
    """
    try:
        migrated, existing = await CommentService(db).migrate(
            body.comments, body.confirm_migration
        )
    except MigrationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    if existing:
        return {
            "message": "Migration already completed",
            "existingCommentsCount": existing,
            "migrationRequired": False,
        }
    return {
        "message": "Migration completed successfully",
        "migratedCommentsCount": len(migrated),
        "migratedComments": [
            {"id": c.id, "bookingId": c.booking_id, "text": c.text[:50]}
            for c in migrated
        ],
    }
