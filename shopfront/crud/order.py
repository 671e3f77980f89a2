from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload
import logging
import uuid
from typing import Any, Dict, List, Optional

from shopfront.models import Order, OrderItem
from shopfront.crud.base import CRUDBase

logger = logging.getLogger(__name__)


def new_order_number() -> str:
    return str(uuid.uuid4())[:8].upper()


class CRUDOrder(CRUDBase[Order]):
    def __init__(self):
        super().__init__(Order)

    def add_with_items(
        self,
        db: Session,
        *,
        obj_in: Dict[str, Any],
        items: List[Dict[str, Any]]
    ) -> Order:
        """Stage an order and its lines; the caller commits"""
        order = Order(order_number=new_order_number(), **obj_in)
        order.items = [OrderItem(**item) for item in items]
        db.add(order)
        db.flush()
        return order

    def get_with_items(self, db: Session, id: int) -> Optional[Order]:
        stmt = select(Order).options(selectinload(Order.items)).where(Order.id == id)
        return db.execute(stmt).scalar_one_or_none()

    def list_for_user(self, db: Session, user_id: int) -> List[Order]:
        stmt = (
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.user_id == user_id)
            .order_by(Order.date.desc(), Order.id.desc())
        )
        return list(db.execute(stmt).scalars().all())


crud_order = CRUDOrder()
