"""
Error taxonomy shared by services and the HTTP layer.
Services raise these; main.py renders them as {"success": false, "error", "message"}.
"""
from typing import Dict, Optional


class ShopError(Exception):
    status_code = 500
    code = "InternalError"
    default_message = "Something went wrong!"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None

    def to_dict(self) -> Dict[str, object]:
        return {"success": False, "error": self.code, "message": self.message}


class MissingField(ShopError):
    status_code = 400
    code = "MissingField"
    default_message = "Missing required fields"


class InvalidId(ShopError):
    status_code = 400
    code = "InvalidId"
    default_message = "Invalid ID format"


class NotFound(ShopError):
    status_code = 404
    code = "NotFound"
    default_message = "Not found"


class DuplicateUser(ShopError):
    status_code = 400
    code = "DuplicateUser"
    default_message = "User already exists"


class DuplicateBarcode(ShopError):
    status_code = 400
    code = "DuplicateBarcode"
    default_message = "Barcode already exists"


class InvalidCredentials(ShopError):
    status_code = 401
    code = "InvalidCredentials"
    default_message = "Invalid credentials"


class Unauthorized(ShopError):
    status_code = 401
    code = "Unauthorized"
    default_message = "Invalid authentication credentials"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class Forbidden(ShopError):
    status_code = 403
    code = "Forbidden"
    default_message = "Insufficient privileges"


class InsufficientStock(ShopError):
    status_code = 400
    code = "InsufficientStock"
    default_message = "Insufficient stock available"


class InvalidDiscount(ShopError):
    status_code = 400
    code = "InvalidDiscount"
    default_message = "Discount must be a number between 0 and 100"


class InvalidNumber(ShopError):
    status_code = 400
    code = "InvalidNumber"
    default_message = "Invalid number"


class InvalidUpload(ShopError):
    status_code = 400
    code = "InvalidUpload"
    default_message = "Only image files are allowed!"


class InternalError(ShopError):
    pass
