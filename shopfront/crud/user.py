from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session
import logging
from typing import Optional

from shopfront.models import User
from shopfront.crud.base import CRUDBase

logger = logging.getLogger(__name__)


class CRUDUser(CRUDBase[User]):
    def __init__(self):
        super().__init__(User)

    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        return db.execute(stmt).scalar_one_or_none()

    def get_by_identifier(self, db: Session, identifier: str) -> Optional[User]:
        """Username match wins over email match"""
        stmt = select(User).where(
            or_(User.username == identifier, func.lower(User.email) == identifier.lower())
        )
        users = db.execute(stmt).scalars().all()
        for user in users:
            if user.username == identifier:
                return user
        return users[0] if users else None

    def exists(self, db: Session, *, username: str, email: str) -> bool:
        """Either value taken as a username or an email by any account"""
        stmt = select(User.id).where(
            or_(
                User.username == username,
                User.username == email,
                func.lower(User.email) == email.lower(),
                func.lower(User.email) == username.lower(),
            )
        ).limit(1)
        return db.execute(stmt).first() is not None

    def identifier_taken(self, db: Session, identifier: str, *, exclude_id: int) -> bool:
        stmt = select(User.id).where(
            or_(User.username == identifier, func.lower(User.email) == identifier.lower()),
            User.id != exclude_id,
        ).limit(1)
        return db.execute(stmt).first() is not None


crud_user = CRUDUser()
