"""
Auth service: registration, login, token verification and account upkeep.

Every login failure (unknown identifier, wrong role, wrong password,
inactive account) raises the same InvalidCredentials so callers cannot
tell which check failed.
"""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging
from typing import Any, Dict, Optional, Tuple

from shopfront import models
from shopfront.crud import crud_user
from shopfront.errors import DuplicateUser, Forbidden, InvalidCredentials, MissingField
from shopfront.schemas.user import RegisterRequest, ProfileUpdate
from shopfront.security import (
    burn_password_check,
    create_user_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)

logger = logging.getLogger(__name__)


def _split_name(name: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    if not name:
        return None, None
    parts = name.strip().split(" ", 1)
    first = parts[0]
    last = parts[1].strip() if len(parts) > 1 else ""
    return first, last


def register(db: Session, payload: RegisterRequest) -> Tuple[str, models.User]:
    role = payload.role or models.ROLE_CUSTOMER
    if role == models.ROLE_ADMIN:
        raise Forbidden("Admin accounts cannot be self-registered")

    email = str(payload.email).strip().lower()
    username = (payload.username or email).strip()

    first_name, last_name = payload.first_name, payload.last_name
    if first_name is None and last_name is None:
        first_name, last_name = _split_name(payload.name)

    if crud_user.exists(db, username=username, email=email):
        logger.info(f"Registration rejected, duplicate user: {username}")
        raise DuplicateUser()

    user_data: Dict[str, Any] = {
        "username": username,
        "email": email,
        "password_hash": get_password_hash(payload.password),
        "role": role,
        "first_name": first_name,
        "last_name": last_name,
        "phone": payload.phone,
        "address": payload.address,
        "store_name": payload.store_name if role == models.ROLE_SHOPKEEPER else None,
        "bio": payload.bio,
        "status": models.STATUS_ACTIVE,
    }
    try:
        user = crud_user.create(db, obj_in=user_data)
    except IntegrityError:
        # Lost a race with a concurrent registration
        raise DuplicateUser()

    logger.info(f"Registered {role} {username} (id={user.id})")
    return create_user_token(user), user


def login(
    db: Session,
    identifier: Optional[str],
    password: Optional[str],
    role: Optional[str] = None
) -> Tuple[str, models.User]:
    if not identifier or not password:
        raise MissingField("Please provide username and password")

    user = crud_user.get_by_identifier(db, identifier.strip())
    if user is None:
        burn_password_check(password)
        logger.warning(f"Failed login for unknown identifier: {identifier}")
        raise InvalidCredentials()

    password_ok = verify_password(password, user.password_hash)
    if not password_ok or (role and user.role != role) or not user.is_active:
        logger.warning(f"Failed login for user {user.username}")
        raise InvalidCredentials()

    logger.info(f"User {user.username} logged in")
    return create_user_token(user), user


def verify(token: str) -> Dict[str, Any]:
    """Claims of a valid token; Unauthorized otherwise"""
    return decode_access_token(token)


def change_password(
    db: Session,
    user: models.User,
    current_password: Optional[str],
    new_password: Optional[str]
) -> None:
    if not current_password or not new_password:
        raise MissingField("Current and new password are required")

    if not verify_password(current_password, user.password_hash):
        logger.warning(f"Password change rejected for {user.username}")
        raise InvalidCredentials("Current password is incorrect")

    crud_user.update(db, id=user.id, obj_in={"password_hash": get_password_hash(new_password)})
    logger.info(f"User {user.username} changed password")


def deactivate(db: Session, user: models.User) -> None:
    """Soft delete; the record and its history stay in place"""
    crud_user.update(db, id=user.id, obj_in={"status": models.STATUS_INACTIVE})
    logger.info(f"User {user.username} deactivated")


def get_profile(user: models.User) -> models.User:
    return user


def update_profile(db: Session, user: models.User, patch: ProfileUpdate) -> models.User:
    changes = {k: v for k, v in patch.model_dump(exclude_unset=True).items() if v is not None}

    if "store_name" in changes and user.role != models.ROLE_SHOPKEEPER:
        changes.pop("store_name")

    if "email" in changes:
        changes["email"] = str(changes["email"]).strip().lower()
        if changes["email"] != user.email.lower():
            # Also blocks an email that another account signs in with as its username
            if crud_user.identifier_taken(db, changes["email"], exclude_id=user.id):
                raise DuplicateUser("Email already in use")

    if not changes:
        return user

    try:
        updated = crud_user.update(db, id=user.id, obj_in=changes)
    except IntegrityError:
        raise DuplicateUser("Email already in use")
    return updated


def seed_admin(db: Session, username: str, email: str, password: str) -> models.User:
    """Make sure exactly this account exists as an active admin; safe to rerun"""
    user = crud_user.get_by_username(db, username)
    if user is None:
        user = crud_user.create(db, obj_in={
            "username": username,
            "email": email.strip().lower(),
            "password_hash": get_password_hash(password),
            "role": models.ROLE_ADMIN,
            "status": models.STATUS_ACTIVE,
        })
        logger.info(f"Seeded admin account {username}")
        return user

    if user.role != models.ROLE_ADMIN or not user.is_active:
        user = crud_user.update(db, id=user.id, obj_in={
            "role": models.ROLE_ADMIN,
            "status": models.STATUS_ACTIVE,
        })
        logger.info(f"Restored admin account {username}")
    return user
