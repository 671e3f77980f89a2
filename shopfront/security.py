"""
Authentication and security module:
- JWT auth via python-jose[cryptography]
- Password hashing via passlib[bcrypt]
- Role-based access control (customer / shopkeeper / admin)
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import logging

from shopfront.config import settings
from shopfront.database import get_db
from shopfront.errors import Unauthorized, Forbidden
from shopfront import models

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# auto_error=False so a missing header goes through our Unauthorized error
security = HTTPBearer(auto_error=False)

_dummy_hash: Optional[str] = None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognised or corrupt hash
        return False


def get_password_hash(password: str) -> str:
    """Hash a password with a per-call salt"""
    return pwd_context.hash(password)


def burn_password_check(password: str) -> None:
    """Spend the same time as a real check when there is no user to check against"""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = get_password_hash("not-a-real-password")
    verify_password(password or "x", _dummy_hash)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)

    if expires_delta is not None:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "iat": now})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_user_token(user: models.User) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role})


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry.
    Raises Unauthorized for anything that is not a valid, unexpired token.
    """
    if not token:
        raise Unauthorized("Not authenticated")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise Unauthorized()

    if payload.get("sub") is None:
        logger.warning("JWT token missing 'sub' claim")
        raise Unauthorized()
    return payload


def user_from_token(db: Session, token: str) -> models.User:
    """Resolve a token to an active user"""
    payload = decode_access_token(token)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise Unauthorized()

    user = db.get(models.User, user_id)
    if user is None:
        logger.warning(f"Token subject not found: {user_id}")
        raise Unauthorized()
    if not user.is_active:
        logger.warning(f"Inactive user presented a token: {user.username}")
        raise Unauthorized("Account is inactive")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> models.User:
    """Get current authenticated user from the bearer token"""
    if credentials is None:
        raise Unauthorized("Not authenticated")
    return user_from_token(db, credentials.credentials)


def require_roles(*roles: str):
    """Dependency factory that admits only the given roles"""
    def checker(current_user: models.User = Depends(get_current_user)) -> models.User:
        if current_user.role not in roles:
            logger.warning(
                f"User {current_user.username} ({current_user.role}) denied, needs one of {roles}"
            )
            raise Forbidden(f"Requires role: {' or '.join(roles)}")
        return current_user
    return checker


require_shopkeeper = require_roles(models.ROLE_SHOPKEEPER, models.ROLE_ADMIN)
