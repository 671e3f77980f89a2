from pydantic import AliasChoices, EmailStr, Field, computed_field, field_validator
from typing import Optional
from datetime import datetime

from shopfront.schemas import CamelModel, blank_to_none

ROLE_PATTERN = "^(customer|shopkeeper|admin)$"


class RegisterRequest(CamelModel):
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Optional[str] = Field(
        None,
        pattern=ROLE_PATTERN,
        validation_alias=AliasChoices("role", "userType", "user_type"),
    )
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    store_name: Optional[str] = None
    bio: Optional[str] = None

    @field_validator(
        "username", "role", "name", "first_name", "last_name",
        "phone", "address", "store_name", "bio",
        mode="before",
    )
    @classmethod
    def strip_blank(cls, v):
        return blank_to_none(v)

    @field_validator("username")
    @classmethod
    def no_at_sign(cls, v):
        # Emails sign in too; a username must never look like one
        if v is not None and "@" in v:
            raise ValueError("Username cannot contain @")
        return v


class LoginRequest(CamelModel):
    """
    One lookup strategy: the identifier may be a username or an email,
    sent under any of the keys below.
    """
    login: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = Field(
        None,
        pattern=ROLE_PATTERN,
        validation_alias=AliasChoices("role", "userType", "user_type"),
    )

    @field_validator("login", "username", "email", "role", mode="before")
    @classmethod
    def strip_blank(cls, v):
        return blank_to_none(v)

    @property
    def identifier(self) -> Optional[str]:
        return self.login or self.username or self.email


class ProfileUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    store_name: Optional[str] = None
    bio: Optional[str] = None

    @field_validator(
        "first_name", "last_name", "email", "phone", "address", "store_name",
        mode="before",
    )
    @classmethod
    def strip_blank(cls, v):
        return blank_to_none(v)


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(None, min_length=6)


class UserPublic(CamelModel):
    id: int
    username: str
    email: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    store_name: Optional[str] = None
    bio: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def user_type(self) -> str:
        return self.role


class AuthResponse(CamelModel):
    success: bool = True
    message: str
    token: str
    user: UserPublic


class ProfileResponse(CamelModel):
    success: bool = True
    user: UserPublic


class MessageResponse(CamelModel):
    success: bool = True
    message: str
