"""
Signing and checking the API's JWTs.

Access tokens carry the account role so clients can adapt their UI without
an extra request. Refresh tokens carry only the identity and can never be
used to call the API directly.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from marketplace.config import settings
from marketplace.models.user import UserRole

ACCESS = "access"
REFRESH = "refresh"


class TokenPayload:
    """Claims of a verified token."""

    def __init__(self, user_id: str, email: str, role: Optional[str], exp: datetime):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.exp = exp

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "TokenPayload":
        return cls(
            user_id=claims["sub"],
            email=claims["email"],
            role=claims.get("role"),
            exp=datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
        )


def _issue(user_id: uuid.UUID, email: str, token_type: str, lifetime: timedelta, **extra: Any) -> str:
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "email": email,
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        **extra,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: UserRole,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Sign a short lived access token.

    Args:
        user_id: Account id, stored as the ``sub`` claim
        email: Account email
        role: Account role, stored by value (``seller``, ``buyer``, ``admin``)
        expires_delta: Lifetime override; defaults to ``ACCESS_TOKEN_EXPIRE_MINUTES``

    Returns:
        Encoded JWT
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _issue(user_id, email, ACCESS, lifetime, role=role.value)


def create_refresh_token(user_id: uuid.UUID, email: str, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a refresh token valid for ``JWT_REFRESH_TOKEN_EXPIRE_DAYS``."""
    lifetime = expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days)
    return _issue(user_id, email, REFRESH, lifetime)


def verify_token(token: str, token_type: str = ACCESS) -> TokenPayload:
    """
    Decode a token and check that it is of the expected kind.

    Raises:
        ExpiredSignatureError: If the token is past its ``exp`` claim
        JWTError: If the signature, type or claims are wrong
    """
    claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])

    if claims.get("type") != token_type:
        raise JWTError(f"Invalid token type. Expected {token_type}")
    if not claims.get("sub") or not claims.get("email"):
        raise JWTError("Invalid token payload")

    return TokenPayload.from_claims(claims)
