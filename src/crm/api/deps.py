"""FastAPI dependency injection for database sessions and authentication."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator

import structlog
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm.core.database import get_session
from src.crm.core.security import verify_token
from src.crm.meetings.exceptions import STORE_ERRORS
from src.crm.models.people import User

logger = structlog.get_logger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session."""
    async for session in get_session():
        yield session


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract and validate the current user from a Bearer JWT.

    Raises:
        HTTPException(401): Missing/invalid token, or the user is unknown
            or soft-deleted.
        HTTPException(503): The user lookup could not reach the database.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(auth_header[7:], token_type="access")
    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        result = await db.execute(
            select(User).where(
                User.id == user_id,
                User.deleted == False,  # noqa: E712
            )
        )
        user = result.scalar_one_or_none()
    except STORE_ERRORS as e:
        logger.error("auth.user_lookup_failed", error=str(e), exc_info=e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication backend unavailable",
        )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user

