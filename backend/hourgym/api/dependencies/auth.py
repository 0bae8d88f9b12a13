# backend/hourgym/api/dependencies/auth.py
"""
Authentication dependencies.
"""

import logging
from typing import Optional

from fastapi import Depends
from jwt import PyJWTError
from sqlalchemy.orm import Session

from ...auth import decode_access_token, oauth2_scheme_optional
from ...core.exceptions import ForbiddenException, UnauthorizedException
from ...models.user import User
from .database import get_db

logger = logging.getLogger(__name__)


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme_optional),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to a user.

    Raises:
        UnauthorizedException: Missing, invalid or expired token, or unknown user
    """
    if not token:
        raise UnauthorizedException("Not authenticated", code="NOT_AUTHENTICATED")
    try:
        payload = decode_access_token(token)
    except PyJWTError as e:
        logger.warning(f"JWT validation error: {str(e)}")
        raise UnauthorizedException("Could not validate credentials", code="INVALID_TOKEN") from e

    user_id = payload.get("sub")
    if not isinstance(user_id, str):
        logger.warning("Token payload missing 'sub' field")
        raise UnauthorizedException("Could not validate credentials", code="INVALID_TOKEN")

    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedException("Could not validate credentials", code="INVALID_TOKEN")
    return user


def require_gym_owner(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_gym_owner:
        raise ForbiddenException("Gym owner access required", code="GYM_OWNER_REQUIRED")
    return current_user
