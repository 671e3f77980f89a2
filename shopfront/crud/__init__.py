from .user import crud_user
from .product import crud_product
from .order import crud_order

__all__ = ["crud_user", "crud_product", "crud_order"]
