"""
Product store.
Stock only moves through decrement_stock, a single conditional UPDATE,
so two sales can never both take the last unit.
"""
from sqlalchemy import select, update, func
from sqlalchemy.orm import Session
import logging
from typing import List, Optional

from shopfront.models import Product
from shopfront.crud.base import CRUDBase

logger = logging.getLogger(__name__)


class CRUDProduct(CRUDBase[Product]):
    def __init__(self):
        super().__init__(Product)

    def get_by_barcode(self, db: Session, barcode: str) -> Optional[Product]:
        stmt = select(Product).where(Product.barcode == barcode)
        return db.execute(stmt).scalar_one_or_none()

    def list_filtered(
        self,
        db: Session,
        *,
        category: Optional[str] = None,
        shopkeeper_id: Optional[int] = None
    ) -> List[Product]:
        """Full listing, optionally narrowed by category and/or owner"""
        stmt = select(Product).order_by(Product.id)
        if category:
            stmt = stmt.where(func.lower(Product.category) == category.lower())
        if shopkeeper_id is not None:
            stmt = stmt.where(Product.shopkeeper_id == shopkeeper_id)
        return list(db.execute(stmt).scalars().all())

    def decrement_stock(
        self,
        db: Session,
        *,
        id: int,
        amount: int,
        commit: bool = True
    ) -> Optional[int]:
        """
        Decrement only if quantity >= amount, as one statement.
        Returns the remaining quantity, or None when no row qualified
        (missing product or not enough stock).
        """
        stmt = (
            update(Product)
            .where(Product.id == id, Product.quantity >= amount)
            .values(quantity=Product.quantity - amount)
            .returning(Product.quantity)
            .execution_options(synchronize_session=False)
        )
        remaining = db.execute(stmt).scalar_one_or_none()
        cached = db.identity_map.get(Session.identity_key(Product, id))
        if cached is not None:
            db.expire(cached, ["quantity"])
        if commit:
            db.commit()
        return remaining

    def current_quantity(self, db: Session, id: int) -> Optional[int]:
        stmt = select(Product.quantity).where(Product.id == id)
        return db.execute(stmt).scalar_one_or_none()


crud_product = CRUDProduct()
