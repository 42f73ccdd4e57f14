from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from .auth_jwt import decode_access_token
from .database import get_db
from .errors import AuthenticationError, AuthorizationError
from .models import User, UserRole
from .settings import settings

# Dependencies resolving the authenticated caller from a bearer token.

# auto_error=False so a missing token goes through our own 401 envelope
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.DROPPERS_API_PREFIX}/auth/login", auto_error=False)


def user_from_token(token: Optional[str], db: Session) -> User:
    """Decode the JWT and return the corresponding active User."""
    if not token:
        raise AuthenticationError("Access token required")
    user_id, _ = decode_access_token(token)
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")
    return user


def get_current_user(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    return user_from_token(token, db)


def require_role(*roles: UserRole):
    """Dependency factory: the caller must hold one of ``roles``."""
    def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise AuthorizationError("Insufficient permissions for this action")
        return user
    return checker


require_vendor = require_role(UserRole.VENDOR)
require_delivery_partner = require_role(UserRole.DELIVERY_PARTNER)
