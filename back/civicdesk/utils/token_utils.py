# Standard library imports
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

# Third-party imports
from jose import JWTError, jwt

# Local application imports
from civicdesk.settings import settings


def create_access_token(user_id: UUID, expires_delta: timedelta | None = None) -> str:
    """
    Mint a bearer token for ``user_id``.

    Token issuance belongs to the account service; this helper exists for
    seeding scripts and tests and produces tokens that service accepts.
    """
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "iat": now,
        "token_type": "access",  # nosec B105
        "jti": str(uuid4()),
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Return the token claims, or ``None`` when the token is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("token_type", "access") != "access":
        return None
    return payload
