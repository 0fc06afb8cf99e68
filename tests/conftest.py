# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Pytest fixtures for booking calendar tests."""

import os
import tempfile
from collections.abc import AsyncGenerator
from typing import Any

import pytest
from cryptography.fernet import Fernet
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


# Set environment variables BEFORE any booking_calendar imports
# This must happen at module load time
def _setup_env() -> None:
    """Set up test environment variables at module load."""
    if "SESSION_SECRET" not in os.environ:
        os.environ["SESSION_SECRET"] = Fernet.generate_key().decode()
    if "DATABASE_URL" not in os.environ:
        os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    if "DATA_DIR" not in os.environ:
        os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="booking-calendar-tests-")
    if "STANDALONE_MODE" not in os.environ:
        os.environ["STANDALONE_MODE"] = "true"
    if "OWNER_PASSWORD" not in os.environ:
        os.environ["OWNER_PASSWORD"] = "owner-secret"
    if "STAFF_PASSWORD" not in os.environ:
        os.environ["STAFF_PASSWORD"] = "staff-secret"
    if "LODGIFY_API_KEY" not in os.environ:
        os.environ["LODGIFY_API_KEY"] = "test-api-key"
    if "LOG_LEVEL" not in os.environ:
        os.environ["LOG_LEVEL"] = "DEBUG"


_setup_env()

# Now safe to import from booking_calendar
from fastapi import FastAPI  # noqa: E402

from booking_calendar import models  # noqa: E402, F401
from booking_calendar.database import Base, get_db  # noqa: E402

SAMPLE_CSV = """Id,Type,Source,SourceText,Name,DateArrival,DateDeparture,Nights,HouseName,InternalCode,House_Id,RoomTypes,People,DateCreated,TotalAmount,Currency,Status,Email,Phone,CountryName
B1,Booking,Airbnb,Airbnb,Ana Lopez,2025-03-03,2025-03-06,3,"At Home in Madrid IV, Centro, Prado, Barrio Letras",,685245,Apartment,2,2025-01-10,450.00,EUR,Booked,ana@example.com,+34600000000,Spain
B2,Booking,Website,Direct,Tom Reed,2025-03-10,2025-03-12,2,"At Home in Madrid IV, Centro, Prado, Barrio Letras",,685245,Apartment,,2025-02-01,,EUR,Open,tom@example.com,,UK
B3,Booking,VRBO,VRBO,Cancelled Guest,2025-03-15,2025-03-18,3,"At Home in Madrid IV, Centro, Prado, Barrio Letras",,685245,Apartment,4,2025-02-02,300.00,EUR,Declined,x@example.com,,France
B4,Booking,Booking.com,Booking,Bad Dates,not-a-date,2025-03-18,3,"At Home in Madrid I, Centro de Madrid",,685243,Apartment,1,2025-02-02,100.00,EUR,Booked,y@example.com,,Italy
B5,Booking,Booking.com,Booking,Luis Gil,2025-02-27,2025-03-02,3,"At Home in Madrid I, Centro de Madrid",,685243,Apartment,3,2025-01-05,390.50,EUR,Booked,luis@example.com,,Spain
"""

SAMPLE_ICS = b"""BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//VRBO//EN
BEGIN:VEVENT
UID:vrbo-event-0000ABCD1234
DTSTART;VALUE=DATE:20250305
DTEND;VALUE=DATE:20250309
SUMMARY:Reserved
END:VEVENT
BEGIN:VEVENT
UID:vrbo-event-0000BROKEN00
DTSTART;VALUE=DATE:20250320
DTEND;VALUE=DATE:20250320
SUMMARY:Reserved
END:VEVENT
BEGIN:VEVENT
UID:vrbo-event-0000NOEND000
DTSTART;VALUE=DATE:20250322
SUMMARY:Reserved
END:VEVENT
END:VCALENDAR
"""


@pytest.fixture
async def async_engine():
    """Create an async test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def async_session(async_engine) -> AsyncGenerator[AsyncSession]:
    """Create an async test database session."""
    session_factory = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def app(async_engine) -> FastAPI:
    """Create a test FastAPI application bound to the test database."""
    from booking_calendar.main import create_app

    application = create_app()
    session_factory = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sample_csv() -> str:
    """Lodgify CSV export with active, inactive and malformed rows."""
    return SAMPLE_CSV


@pytest.fixture
def sample_ics() -> bytes:
    """VRBO iCal feed with one valid and two invalid events."""
    return SAMPLE_ICS


@pytest.fixture
def lodgify_booking() -> dict[str, Any]:
    """Sample Lodgify booking payload."""
    return {
        "id": 9001,
        "status": "Booked",
        "property_id": 685239,
        "arrival": "2025-03-05",
        "departure": "2025-03-09",
        "source": "AirbnbIntegration",
        "total_amount": 520.0,
        "currency_code": "EUR",
        "created_at": "2025-01-15T10:30:00",
        "guest": {"name": "Maria Ruiz", "email": "maria@example.com", "phone": "+3461"},
        "rooms": [{"people": 3}],
    }
