"""
Authentication against tokens issued by the external identity provider.

Nothing here issues tokens or stores credentials. A request is authenticated
when its Bearer token verifies with SECRET_KEY; the `sub` claim is the user id.
"""

import logging
import uuid
from typing import Optional

from config import get_settings
from db.database import bind_request_user, get_db
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from models.user import User
from services.errors import UnauthorizedError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

settings = get_settings()
security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def decode_token(token: str) -> Optional[dict]:
    """
    Verify a JWT and return its payload, or None if it is invalid or expired.

    The audience is only checked when JWT_AUDIENCE is configured; then the
    claim must be present.
    """
    if settings.JWT_AUDIENCE:
        options = {"require_aud": True}
    else:
        options = {"verify_aud": False}
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE or None,
            options=options,
        )
    except JWTError:
        return None


def user_id_from_payload(payload: dict) -> Optional[uuid.UUID]:
    subject = payload.get("sub")
    if not subject:
        return None
    try:
        return uuid.UUID(str(subject))
    except (TypeError, ValueError):
        return None


async def get_or_create_user(
    db: AsyncSession, user_id: uuid.UUID, email: Optional[str] = None
) -> User:
    """Return the local mirror row for `user_id`, creating it on first sight."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is not None:
        return user

    user = User(id=user_id, email=email)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Another request created the row first
        await db.rollback()
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one()

    logger.info(f"Registered user {user_id}")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Dependency to get the authenticated user from the Bearer token."""
    if credentials is None or not credentials.credentials.strip():
        raise UnauthorizedError()

    payload = decode_token(credentials.credentials.strip())
    if payload is None:
        raise UnauthorizedError("Invalid or expired token")

    user_id = user_id_from_payload(payload)
    if user_id is None:
        raise UnauthorizedError("Invalid token subject")

    await bind_request_user(db, user_id)
    return await get_or_create_user(db, user_id, payload.get("email"))
