# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Password login and Fernet session tokens carrying a role."""

import hmac
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from cryptography.fernet import Fernet, InvalidToken

from booking_calendar.config import get_settings

logger = logging.getLogger(__name__)

ROLE_OWNER = "owner"
ROLE_STAFF = "staff"
ROLES = frozenset({ROLE_OWNER, ROLE_STAFF})


class AuthenticationError(Exception):
    """Exception raised when a password or session token is rejected."""

    pass


@dataclass(frozen=True)
class Session:
    """A verified session."""

    role: str
    issued_at: datetime


def get_cipher() -> Fernet:
    """Get Fernet cipher for session tokens.

    Returns:
        Fernet cipher instance.

    Raises:
        ValueError: If the session secret is not configured.
    """
    settings = get_settings()
    if not settings.session_secret:
        msg = "SESSION_SECRET environment variable is required"
        raise ValueError(msg)
    return Fernet(settings.session_secret.encode())


def _matches(candidate: str, expected: str) -> bool:
    """Constant-time password comparison; an unset password never matches."""
    if not expected:
        return False
    return hmac.compare_digest(candidate.encode(), expected.encode())


def authenticate(password: str) -> str:
    """Resolve a password to a role.

    Args:
        password: Submitted password.

    Returns:
        ``owner`` or ``staff``.

    Raises:
        AuthenticationError: If the password matches neither role.
    """
    settings = get_settings()
    # Check both so timing does not reveal which role matched
    is_owner = _matches(password, settings.owner_password)
    is_staff = _matches(password, settings.staff_password)
    if is_owner:
        return ROLE_OWNER
    if is_staff:
        return ROLE_STAFF
    logger.warning("Rejected login attempt")
    msg = "Invalid password"
    raise AuthenticationError(msg)


def issue_token(role: str) -> str:
    """Create a session token for a role.

    Args:
        role: ``owner`` or ``staff``.

    Returns:
        Encrypted, timestamped token.
    """
    if role not in ROLES:
        msg = f"Unknown role: {role}"
        raise ValueError(msg)
    payload = json.dumps({"role": role}).encode()
    return get_cipher().encrypt(payload).decode()


def verify_token(token: str) -> Session:
    """Decrypt and validate a session token.

    Args:
        token: Token returned by ``issue_token``.

    Returns:
        The session it carries.

    Raises:
        AuthenticationError: If the token is malformed, forged or expired.
    """
    cipher = get_cipher()
    ttl = get_settings().session_ttl_minutes * 60
    try:
        raw = cipher.decrypt(token.encode(), ttl=ttl)
        issued = cipher.extract_timestamp(token.encode())
        role = json.loads(raw)["role"]
    except (InvalidToken, ValueError, KeyError, TypeError) as e:
        msg = "Invalid or expired session"
        raise AuthenticationError(msg) from e
    if role not in ROLES:
        msg = "Invalid or expired session"
        raise AuthenticationError(msg)
    return Session(role=role, issued_at=datetime.fromtimestamp(issued, UTC))


def login(password: str) -> tuple[str, str]:
    """Authenticate a password and issue a token.

    Returns:
        Tuple of (role, token).

    Raises:
        AuthenticationError: If the password is wrong.
    """
    role = authenticate(password)
    logger.info("Login succeeded for role %s", role)
    return role, issue_token(role)
