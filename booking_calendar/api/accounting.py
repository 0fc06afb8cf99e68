# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Owner-only accounting report endpoint."""

import logging
from datetime import date
from typing import Annotated, Any

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status

from booking_calendar.api.dependencies import get_directory, get_lodgify_service
from booking_calendar.api.lodgify import lodgify_http_error
from booking_calendar.middleware.auth import require_owner
from booking_calendar.services.accounting_service import (
    DEFAULT_PERIOD,
    AccountingEntry,
    InvalidPeriodError,
    fetch_report,
)
from booking_calendar.services.lodgify_service import (
    LodgifyService,
    LodgifyServiceError,
)
from booking_calendar.services.property_directory import PropertyDirectory

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/accounting",
    tags=["Accounting"],
    dependencies=[Depends(require_owner)],
)


def _entry_to_response(entry: AccountingEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "guestName": entry.guest_name,
        "email": entry.email,
        "phone": entry.phone,
        "propertyId": entry.property_id,
        "propertyName": entry.property_name,
        "arrival": entry.arrival.isoformat(),
        "departure": entry.departure.isoformat(),
        "nights": entry.nights,
        "source": entry.source,
        "totalAmount": str(entry.total_amount),
        "commission": str(entry.commission),
        "commissionRate": str(entry.commission_rate),
        "netAmount": str(entry.net_amount),
        "currency": entry.currency,
        "status": entry.status,
        "people": entry.people,
    }


@router.get("")
async def get_accounting(
    lodgify: Annotated[LodgifyService, Depends(get_lodgify_service)],
    directory: Annotated[PropertyDirectory, Depends(get_directory)],
    period: Annotated[str, Query()] = DEFAULT_PERIOD,
    start: Annotated[date | None, Query()] = None,
    end: Annotated[date | None, Query()] = None,
    property_id: Annotated[int | None, Query(alias="propertyId")] = None,
) -> dict[str, Any]:
    """Revenue, commission and net amounts for a period.

    Raises:
        HTTPException: 400 for a bad period, 502 if Lodgify fails.
    """
    try:
        report = await fetch_report(
            lodgify, directory, period, start=start, end=end, property_id=property_id
        )
    except InvalidPeriodError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except (LodgifyServiceError, httpx.HTTPError) as e:
        logger.error("Accounting fetch failed: %s", e)
        raise lodgify_http_error(e) from e

    return {
        "period": period,
        "start": report.start.isoformat(),
        "end": report.end.isoformat(),
        "reservations": [_entry_to_response(e) for e in report.entries],
        "count": len(report.entries),
        "totals": {
            "revenue": str(report.total_revenue),
            "commission": str(report.total_commission),
            "net": str(report.total_net),
        },
    }
