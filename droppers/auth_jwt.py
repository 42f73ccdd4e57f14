from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
import jwt  # PyJWT

from .errors import AuthenticationError
from .settings import settings

# Password hashing and JWT creation/decoding for the Droppers API.

PWD = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.DROPPERS_BCRYPT_ROUNDS)


def hash_password(plain: str) -> str:
    """Hash a plaintext password using bcrypt."""
    return PWD.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plaintext password against a hashed password."""
    return PWD.verify(plain, hashed)


def create_access_token(user_id: str, email: str, role: str) -> str:
    """Create a signed JWT carrying the user's id, email and role."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.DROPPERS_ACCESS_MIN),
    }
    return jwt.encode(payload, settings.DROPPERS_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> tuple[str, str]:
    """Return ``(user_id, role)`` from a token or raise AuthenticationError."""
    try:
        data = jwt.decode(token, settings.DROPPERS_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")
    user_id = data.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token")
    return user_id, data.get("role", "")
