"""
Products router: catalog reads are public, writes and stock movement
need a shopkeeper (or admin) token. Shopkeepers change only their own products.
"""
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional

from shopfront.database import get_db
from shopfront import models
from shopfront.schemas.order import BillCreate, BillResponse
from shopfront.schemas.product import (
    ProductCreate,
    ProductListResponse,
    ProductPatch,
    ProductResponse,
    StockUpdateRequest,
    StockUpdateResponse,
)
from shopfront.schemas.user import MessageResponse
from shopfront.security import require_shopkeeper
from shopfront.services import catalog
from shopfront.services import orders as order_service

router = APIRouter(prefix="/products", tags=["products"])


# ====================
# STOCK & BILLING
# ====================

@router.post("/stock", response_model=StockUpdateResponse)
def update_stock(
    payload: StockUpdateRequest,
    current_user: models.User = Depends(require_shopkeeper),
    db: Session = Depends(get_db)
):
    remaining = order_service.update_stock(db, payload.product_id, payload.quantity)
    return {
        "message": "Product stock updated successfully",
        "product_id": catalog.parse_id(payload.product_id),
        "remaining_quantity": remaining,
        "updated_quantity": remaining,
    }


@router.post("/bill", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
def create_bill(
    payload: BillCreate,
    current_user: models.User = Depends(require_shopkeeper),
    db: Session = Depends(get_db)
):
    bill = order_service.create_bill(
        db, payload.items, payload.total_amount, payload.date, user=current_user
    )
    return {"message": "Bill created successfully", "bill": bill}


# ====================
# CATALOG
# ====================

@router.get("", response_model=ProductListResponse)
def list_products(
    category: Optional[str] = None,
    shopkeeper_id: Optional[int] = Query(None, ge=1, le=models.INT_MAX),
    db: Session = Depends(get_db)
):
    products = catalog.list_products(db, category=category, shopkeeper_id=shopkeeper_id)
    return {
        "message": "All Products fetched successfully",
        "count": len(products),
        "products": products,
    }


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    fields: ProductCreate,
    current_user: models.User = Depends(require_shopkeeper),
    db: Session = Depends(get_db)
):
    product = catalog.create_product(db, fields, owner=current_user)
    return {"message": "Product added successfully", "product": product}


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: str, db: Session = Depends(get_db)):
    product = catalog.get_product(db, product_id)
    return {"message": "Product fetched successfully", "product": product}


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: str,
    patch: ProductPatch,
    current_user: models.User = Depends(require_shopkeeper),
    db: Session = Depends(get_db)
):
    product = catalog.update_product(db, product_id, patch, actor=current_user)
    return {"message": "Product updated successfully", "product": product}


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: str,
    current_user: models.User = Depends(require_shopkeeper),
    db: Session = Depends(get_db)
):
    catalog.delete_product(db, product_id, actor=current_user)
    return {"message": "Product deleted successfully"}


@router.post("/{product_id}/image", response_model=ProductResponse)
def upload_product_image(
    product_id: str,
    productImage: UploadFile = File(...),
    current_user: models.User = Depends(require_shopkeeper),
    db: Session = Depends(get_db)
):
    product = catalog.attach_image(db, product_id, productImage, actor=current_user)
    return {"message": "Product image uploaded successfully", "product": product}
