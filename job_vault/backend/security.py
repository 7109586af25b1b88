"""
Password hashing and access tokens for the bundled gateway's auth.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config.settings import get_settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> tuple:
    """Return ``(token, expires_at)`` for the given claims."""
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = dict(data)
    to_encode.update({"exp": expire})
    token = jwt.encode(to_encode, secret_key or settings.secret_key, algorithm=algorithm or settings.algorithm)
    return token, expire


def decode_access_token(token: str, secret_key: Optional[str] = None, algorithm: Optional[str] = None) -> Optional[str]:
    """Subject of a valid token, or None when it is expired or tampered with."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, secret_key or settings.secret_key, algorithms=[algorithm or settings.algorithm])
    except JWTError:
        return None
    return payload.get("sub")
