"""
Base CRUD operations with SQLAlchemy 2.x patterns.
select(), insert(), update(), delete() only; failures roll back and propagate.
"""
from sqlalchemy import select, insert, update, delete
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.orm import Session
import logging
from typing import TypeVar, Generic, Type, Optional, Dict, Any
from shopfront.database import Base

logger = logging.getLogger(__name__)
ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: int) -> Optional[ModelType]:
        """Get record by ID"""
        stmt = select(self.model).where(self.model.id == id)
        return db.execute(stmt).scalar_one_or_none()

    def create(self, db: Session, *, obj_in: Dict[str, Any]) -> ModelType:
        """Create record using insert() ... RETURNING"""
        try:
            stmt = insert(self.model).values(**obj_in).returning(self.model)
            obj = db.execute(stmt).scalar_one()
            db.commit()
            return obj
        except IntegrityError as e:
            db.rollback()
            logger.error(f"Integrity error creating {self.model.__name__}: {e}")
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating {self.model.__name__}: {e}")
            raise

    def update(self, db: Session, *, id: int, obj_in: Dict[str, Any]) -> Optional[ModelType]:
        """Apply all values in one UPDATE; None when the row is gone"""
        try:
            stmt = (
                update(self.model)
                .where(self.model.id == id)
                .values(**obj_in)
                .returning(self.model)
                .execution_options(synchronize_session="fetch")
            )
            obj = db.execute(stmt).scalar_one_or_none()
            db.commit()
            if obj is not None:
                db.refresh(obj)
            return obj
        except IntegrityError as e:
            db.rollback()
            logger.error(f"Integrity error updating {self.model.__name__} {id}: {e}")
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating {self.model.__name__} {id}: {e}")
            raise

    def remove(self, db: Session, *, id: int) -> bool:
        """Hard delete; False when nothing matched"""
        try:
            result = db.execute(delete(self.model).where(self.model.id == id))
            db.commit()
            return result.rowcount > 0
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting {self.model.__name__} {id}: {e}")
            raise
