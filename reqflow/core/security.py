from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from reqflow.core.config import get_settings

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)


def _encode(claims: Dict[str, Any], expire: datetime) -> str:
    to_encode = dict(claims, exp=expire)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_access_token(
    user_id: int,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token carrying the user's id and role."""
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)

    return _encode({"sub": str(user_id), "role": role, "type": ACCESS_TOKEN}, expire)


def create_refresh_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT refresh token. It only identifies the user."""
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(days=settings.refresh_token_expire_days)

    return _encode({"sub": str(user_id), "type": REFRESH_TOKEN}, expire)


def decode_token(token: str, expected_type: str = ACCESS_TOKEN) -> Optional[Dict[str, Any]]:
    """Decode and validate a JWT. Returns its claims, or None if invalid or expired."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    if payload.get("sub") is None or payload.get("type") != expected_type:
        return None
    if expected_type == ACCESS_TOKEN and payload.get("role") is None:
        return None
    return payload
