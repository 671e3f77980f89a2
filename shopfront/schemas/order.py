from pydantic import ConfigDict, Field, StrictInt, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from shopfront.schemas import CamelModel, blank_to_none


class BillItem(CamelModel):
    # POS clients attach whatever they render; unknown keys are ignored
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    product_id: Optional[int] = None
    name: Optional[str] = None
    price: Decimal = Field(Decimal("0"), ge=0)
    quantity: int = Field(1, ge=1)

    @field_validator("product_id", "name", mode="before")
    @classmethod
    def strip_blank(cls, v):
        return blank_to_none(v)


class BillCreate(CamelModel):
    items: Optional[List[BillItem]] = None
    total_amount: Optional[Decimal] = Field(None, ge=0)
    date: Optional[datetime] = None


class OrderLine(CamelModel):
    product_id: StrictInt
    quantity: StrictInt = Field(..., ge=1)


class OrderCreate(CamelModel):
    items: List[OrderLine]


class OrderItemOut(CamelModel):
    product_id: Optional[int] = None
    name: str
    price: float
    quantity: int


class OrderOut(CamelModel):
    id: int
    order_number: str
    user_id: Optional[int] = None
    kind: str
    total_amount: float
    date: datetime
    status: str
    items: List[OrderItemOut]


class BillResponse(CamelModel):
    success: bool = True
    message: str
    bill: OrderOut


class OrderResponse(CamelModel):
    success: bool = True
    message: str
    order: OrderOut


class OrderListResponse(CamelModel):
    success: bool = True
    count: int
    orders: List[OrderOut]
