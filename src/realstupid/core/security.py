"""Session token helpers.

Sign-in itself is delegated to the external identity provider; once its
profile has been mirrored locally the service issues a short JWT whose
subject is the provider's user id.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from realstupid.core.settings import settings


def create_access_token(user_id: str) -> str:
    """Create a JWT access token for the given user id."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    encoded_jwt: str = jwt.encode(
        {"sub": user_id, "exp": expire},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> str | None:
    """Return the subject of a valid token, or None when it cannot be trusted."""
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        return None
    return subject
