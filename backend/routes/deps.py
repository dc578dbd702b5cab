import logging
import uuid

from fastapi import Depends, Header, HTTPException
from jose import JWTError, jwt

import settings

logger = logging.getLogger("tapin.auth")


def decode_user_id(token: str) -> str:
    """Verify an access token of the auth provider, return its subject"""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options={"verify_aud": settings.JWT_AUDIENCE is not None},
        )
    except JWTError as e:
        logger.debug(f"Rejected token: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Token missing sub claim")
    try:
        return str(uuid.UUID(sub))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid sub claim")


def get_current_user_id(
    authorization: str | None = Header(default=None),
) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Invalid Authorization header")
    return decode_user_id(token)


def current_user_id(user_id: str | None = Depends(get_current_user_id)) -> str:
    if user_id is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id
