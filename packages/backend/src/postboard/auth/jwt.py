"""JWT token creation and verification.

Tokens are stateless: validity is the signature plus the `exp` claim,
there is no server-side revocation list. The `sub` claim carries the
user id.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from postboard.config import settings

TOKEN_TYPE = "access"


class InvalidToken(Exception):
    """Raised when a token cannot be verified."""


def issue_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token for a user id."""
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": str(user_id),
        "type": TOKEN_TYPE,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> str:
    """Verify a token and return the user id it was issued for.

    Raises InvalidToken on a bad signature, a malformed or expired token,
    or missing claims.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidToken("Token has expired")
    except jwt.InvalidTokenError as e:
        raise InvalidToken(f"Invalid token: {e}")

    if payload.get("type") != TOKEN_TYPE:
        raise InvalidToken("Invalid token: not an access token")
    return payload["sub"]
