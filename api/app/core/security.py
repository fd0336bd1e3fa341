"""
Bearer-token authentication.

Sessions are issued by the sign-in service; this API only verifies the JWT and
loads the user named by its "sub" claim.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlmodel import Session

from app.core.config import settings
from app.core.database import get_session
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.models.models import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed token for a user (used by tooling and tests)."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=2))
    return jwt.encode(
        {"sub": user_id, "exp": expire},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> Optional[str]:
    """Return the user id in a valid token, or None."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.info(f"Rejected access token: {e}")
        return None
    subject = payload.get("sub")
    return subject if isinstance(subject, str) and subject else None


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_session)
) -> User:
    """Dependency resolving the authenticated user (401 otherwise)."""
    if credentials is None:
        raise AuthenticationError("Unauthorized")

    user_id = decode_access_token(credentials.credentials)
    user = session.get(User, user_id) if user_id else None
    if not user:
        raise AuthenticationError("Unauthorized")
    return user


def require_active_subscription(user: User = Depends(get_current_user)) -> User:
    """Dependency requiring an active subscription (403 otherwise)."""
    if not user.has_active_subscription:
        raise AuthorizationError("Active subscription required")
    return user
