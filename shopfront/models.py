"""
SQLAlchemy 2.x models.
Users are soft-deleted through status; products are hard-deleted.
"""
from sqlalchemy import (
    Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Text, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from decimal import Decimal

from shopfront.database import Base

ROLE_CUSTOMER = "customer"
ROLE_SHOPKEEPER = "shopkeeper"
ROLE_ADMIN = "admin"
ROLES = (ROLE_CUSTOMER, ROLE_SHOPKEEPER, ROLE_ADMIN)

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"

# Largest value an Integer column holds on every supported backend
INT_MAX = 2**31 - 1


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    # Wide enough for an email, which becomes the username when none is given
    username = Column(String(255), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_CUSTOMER)
    first_name = Column(String(100))
    last_name = Column(String(100))
    phone = Column(String(20))
    address = Column(Text)
    store_name = Column(String(100))
    bio = Column(Text)
    status = Column(String(10), nullable=False, default=STATUS_ACTIVE)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    products = relationship("Product", back_populates="shopkeeper")
    orders = relationship("Order", back_populates="user")

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("discount >= 0 AND discount <= 100", name="ck_products_discount_range"),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    category = Column(String(100), nullable=False)
    sku = Column(String(100), nullable=False)
    barcode = Column(String(100), unique=True, nullable=True)
    discount = Column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    expiry_date = Column(Date)
    manufacture_date = Column(Date)
    image_url = Column(Text)
    shopkeeper_id = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    shopkeeper = relationship("User", back_populates="products")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(20), unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"))
    kind = Column(String(10), nullable=False, default="order")
    total_amount = Column(Numeric(12, 2), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default="completed")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    # Free-form bill lines have no product; deleting a product keeps order history
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"))
    name = Column(String(200), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")
