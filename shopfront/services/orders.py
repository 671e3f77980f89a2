"""
Stock and order service.

All stock movement goes through crud_product.decrement_stock, which only
succeeds when enough quantity is left at the moment the UPDATE runs.
"""
from sqlalchemy.orm import Session
import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Optional, Sequence

from shopfront import models
from shopfront.crud import crud_product, crud_order
from shopfront.errors import (
    Forbidden, InsufficientStock, InvalidNumber, MissingField, NotFound
)
from shopfront.schemas.order import BillItem, OrderLine
from shopfront.services.catalog import MAX_PRICE, parse_id

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
MAX_TOTAL = Decimal("9999999999.99")


def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def _check_line_quantity(quantity: int) -> None:
    if quantity > models.INT_MAX:
        raise InvalidNumber(f"Quantity must be between 1 and {models.INT_MAX}")


def _raise_for_failed_decrement(db: Session, product_id: int, requested: int) -> None:
    available = crud_product.current_quantity(db, product_id)
    if available is None:
        raise NotFound("Product not found")
    logger.info(f"Stock rejected for product {product_id}: requested {requested}, available {available}")
    raise InsufficientStock()


def update_stock(db: Session, product_id: Any, quantity_sold: Any) -> int:
    """Record a sale against stock and return what is left"""
    if product_id is None or quantity_sold is None:
        raise MissingField("Product ID and quantity are required")

    pid = parse_id(product_id)
    if isinstance(quantity_sold, bool) or not isinstance(quantity_sold, int):
        raise InvalidNumber("Quantity must be a positive integer")
    if quantity_sold < 1 or quantity_sold > models.INT_MAX:
        raise InvalidNumber(f"Quantity must be between 1 and {models.INT_MAX}")

    remaining = crud_product.decrement_stock(db, id=pid, amount=quantity_sold)
    if remaining is None:
        _raise_for_failed_decrement(db, pid, quantity_sold)

    logger.info(f"Sold {quantity_sold} of product {pid}, {remaining} left")
    return remaining


def create_bill(
    db: Session,
    items: Optional[Sequence[BillItem]],
    total_amount: Optional[Decimal] = None,
    date: Optional[datetime] = None,
    user: Optional[models.User] = None
) -> models.Order:
    """Persist a point-of-sale bill; stock is settled separately via update_stock"""
    if not items:
        raise MissingField("Bill items are required")

    lines = []
    for item in items:
        _check_line_quantity(item.quantity)
        if item.price > MAX_PRICE:
            raise InvalidNumber(f"Price must be a number between 0 and {MAX_PRICE}")
        # Lines keep their name and price even when the product is unknown or gone
        product_id = item.product_id
        if product_id is not None and (
            not 0 < product_id <= models.INT_MAX or crud_product.get(db, id=product_id) is None
        ):
            product_id = None
        lines.append({
            "product_id": product_id,
            "name": item.name or (f"Product {item.product_id}" if item.product_id else "Item"),
            "price": _money(item.price),
            "quantity": item.quantity,
        })

    if total_amount is None:
        total_amount = sum((line["price"] * line["quantity"] for line in lines), Decimal("0"))
    if total_amount > MAX_TOTAL:
        raise InvalidNumber(f"Total amount must not exceed {MAX_TOTAL}")

    order = crud_order.add_with_items(
        db,
        obj_in={
            "user_id": user.id if user is not None else None,
            "kind": "bill",
            "total_amount": _money(total_amount),
            "date": date or datetime.now(timezone.utc),
            "status": "completed",
        },
        items=lines,
    )
    db.commit()
    logger.info(f"Bill {order.order_number} recorded: {len(lines)} lines, total {order.total_amount}")
    return order


def place_order(db: Session, user: models.User, items: Sequence[OrderLine]) -> models.Order:
    """
    Customer checkout. Every line is decremented in one transaction;
    any shortfall rolls the whole order back.
    """
    if not items:
        raise MissingField("Order items are required")

    lines = []
    total = Decimal("0")
    try:
        for item in items:
            pid = parse_id(item.product_id)
            _check_line_quantity(item.quantity)
            product = crud_product.get(db, id=pid)
            if product is None:
                raise NotFound(f"Product {pid} not found")

            remaining = crud_product.decrement_stock(db, id=pid, amount=item.quantity, commit=False)
            if remaining is None:
                raise InsufficientStock(f"Insufficient stock for {product.name}")

            unit_price = _money(product.price * (Decimal("100") - product.discount) / Decimal("100"))
            total += unit_price * item.quantity
            lines.append({
                "product_id": pid,
                "name": product.name,
                "price": unit_price,
                "quantity": item.quantity,
            })

        order = crud_order.add_with_items(
            db,
            obj_in={
                "user_id": user.id,
                "kind": "order",
                "total_amount": _money(total),
                "date": datetime.now(timezone.utc),
                "status": "completed",
            },
            items=lines,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Order {order.order_number} placed by {user.username}: total {order.total_amount}")
    return order


def get_order(db: Session, user: models.User, order_id: Any) -> models.Order:
    order = crud_order.get_with_items(db, id=parse_id(order_id))
    if order is None:
        raise NotFound("Order not found")
    if user.role == models.ROLE_CUSTOMER and order.user_id != user.id:
        raise Forbidden("Not your order")
    return order


def list_orders(db: Session, user: models.User) -> List[models.Order]:
    return crud_order.list_for_user(db, user.id)
