"""
Catalog service: product create/read/update/delete.

Field rules
- required on create: name, description, price, quantity, category, sku
- barcode: optional, unique when present
- discount: 0..100 inclusive
- price and quantity: non-negative and within column range
- shopkeepers may only change or delete their own products; admins any
"""
from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from shopfront import models
from shopfront.config import settings
from shopfront.crud import crud_product
from shopfront.errors import (
    DuplicateBarcode, Forbidden, InvalidDiscount, InvalidId, InvalidNumber, MissingField, NotFound
)
from shopfront.schemas.product import ProductCreate, ProductPatch
from shopfront.uploads import save_product_image

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "description", "price", "quantity", "category", "sku")
MAX_PRICE = Decimal("99999999.99")


def parse_id(value: Any) -> int:
    """Accept positive integers and their string form; anything else is InvalidId"""
    if isinstance(value, bool):
        raise InvalidId()
    if isinstance(value, int):
        product_id = value
    elif isinstance(value, str) and value.strip().isdigit():
        product_id = int(value.strip())
    else:
        raise InvalidId()
    if product_id <= 0 or product_id > models.INT_MAX:
        raise InvalidId()
    return product_id


def _check_discount(discount: Optional[Decimal]) -> None:
    if discount is None:
        return
    if not discount.is_finite() or discount < 0 or discount > 100:
        raise InvalidDiscount()


def _check_non_negative(values: Dict[str, Any]) -> None:
    price = values.get("price")
    if price is not None and (not price.is_finite() or price < 0 or price > MAX_PRICE):
        raise InvalidNumber(f"Price must be a number between 0 and {MAX_PRICE}")
    quantity = values.get("quantity")
    if quantity is not None and (quantity < 0 or quantity > models.INT_MAX):
        raise InvalidNumber(f"Quantity must be an integer between 0 and {models.INT_MAX}")


def _check_owner(product: models.Product, actor: Optional[models.User]) -> None:
    """Admins manage any product; shopkeepers only the ones they created"""
    if actor is None or actor.role == models.ROLE_ADMIN:
        return
    if product.shopkeeper_id != actor.id:
        logger.warning(f"User {actor.username} denied access to product {product.id}")
        raise Forbidden("You can only manage your own products")


def _check_barcode_free(db: Session, barcode: str, product_id: Optional[int] = None) -> None:
    existing = crud_product.get_by_barcode(db, barcode)
    if existing is not None and existing.id != product_id:
        raise DuplicateBarcode()


def create_product(db: Session, fields: ProductCreate, owner: Optional[models.User] = None) -> models.Product:
    values = fields.model_dump()

    missing = [name for name in REQUIRED_FIELDS if values.get(name) is None]
    if missing:
        raise MissingField(f"Missing required fields: {', '.join(missing)}")

    if values["discount"] is None:
        values["discount"] = Decimal("0")
    _check_discount(values["discount"])
    _check_non_negative(values)

    if values["barcode"]:
        values["barcode"] = values["barcode"].strip()
        _check_barcode_free(db, values["barcode"])

    if not values["image_url"]:
        values["image_url"] = settings.PLACEHOLDER_IMAGE_URL
    values["shopkeeper_id"] = owner.id if owner is not None else None

    try:
        product = crud_product.create(db, obj_in=values)
    except IntegrityError:
        # Another request claimed the barcode between the check and the insert
        if values["barcode"]:
            raise DuplicateBarcode()
        raise

    logger.info(f"Product {product.id} ({product.sku}) created by {owner.username if owner else 'system'}")
    return product


def list_products(
    db: Session,
    category: Optional[str] = None,
    shopkeeper_id: Optional[int] = None
) -> List[models.Product]:
    # TODO: paginate once catalogs outgrow a single response
    return crud_product.list_filtered(db, category=category, shopkeeper_id=shopkeeper_id)


def get_product(db: Session, product_id: Any) -> models.Product:
    product = crud_product.get(db, id=parse_id(product_id))
    if product is None:
        raise NotFound("Product not found")
    return product


def update_product(
    db: Session,
    product_id: Any,
    patch: ProductPatch,
    actor: Optional[models.User] = None
) -> models.Product:
    pid = parse_id(product_id)
    _check_owner(get_product(db, pid), actor)

    changes = patch.supplied()
    _check_discount(changes.get("discount"))
    _check_non_negative(changes)
    if changes.get("barcode"):
        changes["barcode"] = changes["barcode"].strip()
        _check_barcode_free(db, changes["barcode"], product_id=pid)

    if not changes:
        return crud_product.get(db, id=pid)

    try:
        product = crud_product.update(db, id=pid, obj_in=changes)
    except IntegrityError:
        if "barcode" in changes:
            raise DuplicateBarcode()
        raise
    if product is None:
        raise NotFound("Product not found")

    logger.info(f"Product {pid} updated: {sorted(changes)}")
    return product


def delete_product(db: Session, product_id: Any, actor: Optional[models.User] = None) -> None:
    pid = parse_id(product_id)
    _check_owner(get_product(db, pid), actor)
    if not crud_product.remove(db, id=pid):
        raise NotFound("Product not found")
    logger.info(f"Product {pid} deleted")


def set_image_url(db: Session, product_id: Any, image_url: str) -> models.Product:
    pid = parse_id(product_id)
    product = crud_product.update(db, id=pid, obj_in={"image_url": image_url})
    if product is None:
        raise NotFound("Product not found")
    return product


def attach_image(
    db: Session,
    product_id: Any,
    upload: UploadFile,
    actor: Optional[models.User] = None
) -> models.Product:
    # Check the product before writing anything to disk
    _check_owner(get_product(db, product_id), actor)
    image_url = save_product_image(upload)
    product = set_image_url(db, product_id, image_url)
    logger.info(f"Product {product.id} image set to {image_url}")
    return product
