"""
Bearer token verification.

Tokens are issued by the auth service; the ledger only needs the caller's
user id, carried in the ``sub`` claim.
"""
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from groupledger.core.config import settings

bearer_scheme = HTTPBearer()


def _invalid_token() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    """Sign a token for ``user_id`` (tests and local tooling)."""
    issued = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)
    claims = {"sub": user_id, "iat": issued, "exp": issued + lifetime}
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """Return the user id in ``token``; 401 when it is malformed, expired or has no subject."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise _invalid_token()

    user_id = claims.get("sub")
    if not user_id:
        raise _invalid_token()
    return user_id


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> str:
    return decode_access_token(credentials.credentials)
