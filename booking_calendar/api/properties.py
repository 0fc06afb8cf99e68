# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Property directory listing."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from booking_calendar.api.dependencies import get_directory
from booking_calendar.services.property_directory import (
    PropertyDirectory,
    apartment_code,
    display_name,
    roman_numeral,
)

router = APIRouter(prefix="/api/properties", tags=["Properties"])


class PropertyResponse(BaseModel):
    """Response model for one property."""

    id: int = Field(description="Lodgify property ID")
    name: str = Field(description="Apartment name")
    display_name: str = Field(description="Short display name")
    numeral: str = Field(description="Roman numeral, or empty")
    code: str = Field(description="Internal apartment code, or empty")


class PropertiesResponse(BaseModel):
    """Response model for the property directory."""

    properties: list[PropertyResponse] = Field(description="Known properties")
    total: int = Field(description="Total count")


@router.get("", response_model=PropertiesResponse)
async def list_properties(
    directory: Annotated[PropertyDirectory, Depends(get_directory)],
) -> dict[str, Any]:
    """Get all known properties ordered by id."""
    properties = [
        {
            "id": property_id,
            "name": name,
            "display_name": display_name(name),
            "numeral": roman_numeral(name),
            "code": apartment_code(name),
        }
        for property_id, name in directory.items()
    ]
    return {"properties": properties, "total": len(properties)}
