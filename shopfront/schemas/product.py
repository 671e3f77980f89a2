from pydantic import StrictInt, field_validator
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal

from shopfront.schemas import CamelModel, blank_to_none

PRODUCT_TEXT_FIELDS = ("name", "description", "category", "sku", "barcode", "image_url")


class ProductFields(CamelModel):
    """
    Every field optional: presence and range rules belong to the catalog
    service so that they raise MissingField / InvalidDiscount / InvalidNumber.
    Type coercion failures surface as InvalidNumber through the request
    validation handler.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    quantity: Optional[int] = None
    category: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    discount: Optional[Decimal] = None
    expiry_date: Optional[date] = None
    manufacture_date: Optional[date] = None
    image_url: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def strip_blank(cls, v):
        return blank_to_none(v)


class ProductCreate(ProductFields):
    pass


class ProductPatch(ProductFields):
    """Partial update; only fields carrying a value are applied"""

    def supplied(self) -> Dict[str, Any]:
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class ProductOut(CamelModel):
    id: int
    name: str
    description: str
    price: float
    quantity: int
    category: str
    sku: str
    barcode: Optional[str] = None
    discount: float
    expiry_date: Optional[date] = None
    manufacture_date: Optional[date] = None
    image_url: Optional[str] = None
    shopkeeper_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductResponse(CamelModel):
    success: bool = True
    message: str
    product: ProductOut


class ProductListResponse(CamelModel):
    success: bool = True
    message: str
    count: int
    products: List[ProductOut]


class StockUpdateRequest(CamelModel):
    # Ids are checked by parse_id; JSON booleans are neither ids nor quantities
    product_id: Optional[Any] = None
    quantity: Optional[StrictInt] = None

    @field_validator("product_id", "quantity", mode="before")
    @classmethod
    def strip_blank(cls, v):
        return blank_to_none(v)


class StockUpdateResponse(CamelModel):
    success: bool = True
    message: str
    product_id: int
    remaining_quantity: int
    updated_quantity: int
