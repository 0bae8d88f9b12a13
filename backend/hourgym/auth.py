"""
Bearer token handling.

Sign-up and login live outside this service. Requests carry an HS256 JWT
whose ``sub`` claim is the user id.
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

from fastapi.security import OAuth2PasswordBearer
import jwt

from .core.config import settings

logger = logging.getLogger(__name__)

oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify an access token.

    Raises:
        jwt.PyJWTError: Bad signature, expired, or malformed token
    """
    payload = jwt.decode(
        token,
        settings.secret_key.get_secret_value(),
        algorithms=[settings.algorithm],
        options={"verify_aud": False},
    )
    return cast(Dict[str, Any], payload)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Used by tests and internal tooling; the identity provider issues real tokens.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return cast(
        str,
        jwt.encode(to_encode, settings.secret_key.get_secret_value(), algorithm=settings.algorithm),
    )
