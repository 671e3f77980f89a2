"""
Login and signup form validation for the server-rendered pages.
Errors are reported per field, keyed by the form input name.
"""
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
import re
from typing import Dict, Optional, Tuple, Type, TypeVar

LOGIN_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SIGNUP_EMAIL_RE = re.compile(r"\S+@\S+\.\S+")
PHONE_RE = re.compile(r"^\d{10}$")

FormType = TypeVar("FormType", bound=BaseModel)


class LoginForm(BaseModel):
    model_config = ConfigDict(validate_default=True)

    login: str = ""
    password: str = ""
    role: str = "customer"

    @field_validator("login")
    @classmethod
    def check_login(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter your username or email")
        if "@" in v and not LOGIN_EMAIL_RE.match(v):
            raise ValueError("Please enter a valid email address")
        return v

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return v

    @field_validator("role")
    @classmethod
    def check_role(cls, v: str) -> str:
        if v not in ("customer", "shopkeeper", "admin"):
            raise ValueError("Choose a role")
        return v


class SignupForm(BaseModel):
    model_config = ConfigDict(validate_default=True)

    user_type: str = "customer"
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    password: str = ""
    confirm_password: str = ""
    store_name: str = ""
    address: str = ""

    @field_validator("user_type")
    @classmethod
    def check_user_type(cls, v: str) -> str:
        if v not in ("customer", "shopkeeper"):
            raise ValueError("Choose customer or shopkeeper")
        return v

    @field_validator("first_name")
    @classmethod
    def check_first_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("First name required")
        return v.strip()

    @field_validator("last_name")
    @classmethod
    def check_last_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Last name required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Email required")
        if not SIGNUP_EMAIL_RE.search(v):
            raise ValueError("Invalid email")
        return v.lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password required")
        if len(v) < 6:
            raise ValueError("Min 6 characters")
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Phone required")
        if not PHONE_RE.match(v):
            raise ValueError("Phone must be 10 digits")
        return v

    @field_validator("address")
    @classmethod
    def check_address(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Address required")
        return v.strip()

    def cross_field_errors(self) -> Dict[str, str]:
        errors = {}
        if self.password and self.password != self.confirm_password:
            errors["confirm_password"] = "Passwords do not match"
        if self.user_type == "shopkeeper" and not self.store_name.strip():
            errors["store_name"] = "Store name required"
        return errors

    def to_registration(self) -> Dict[str, Optional[str]]:
        data = {
            "name": f"{self.first_name} {self.last_name}".strip(),
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "password": self.password,
            "role": self.user_type,
            "phone": self.phone,
            "address": self.address,
        }
        if self.user_type == "shopkeeper":
            data["store_name"] = self.store_name.strip()
        return data


def validate_form(form_cls: Type[FormType], data: Dict[str, str]) -> Tuple[Optional[FormType], Dict[str, str]]:
    """Return (form, {}) on success or (None, {field: message}) on failure"""
    try:
        form = form_cls(**data)
    except ValidationError as exc:
        errors = {}
        for err in exc.errors():
            field = str(err["loc"][0]) if err["loc"] else "general"
            message = err.get("ctx", {}).get("error") or err["msg"]
            errors.setdefault(field, str(message))
        return None, errors

    cross = getattr(form, "cross_field_errors", None)
    errors = cross() if cross else {}
    if errors:
        return None, errors
    return form, {}
