"""
User router: registration, login and the authenticated account endpoints.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shopfront.database import get_db
from shopfront import models
from shopfront.schemas.user import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    ProfileResponse,
    ProfileUpdate,
    RegisterRequest,
)
from shopfront.schemas.order import OrderListResponse
from shopfront.security import get_current_user
from shopfront.services import auth as auth_service
from shopfront.services import orders as order_service

router = APIRouter(prefix="/user", tags=["user"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    token, user = auth_service.register(db, payload)
    return {"message": "User registered successfully", "token": token, "user": user}


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    token, user = auth_service.login(db, payload.identifier, payload.password, payload.role)
    return {"message": "Login successful", "token": token, "user": user}


# Protected routes - require a bearer token

@router.get("/profile", response_model=ProfileResponse)
def read_profile(current_user: models.User = Depends(get_current_user)):
    return {"user": auth_service.get_profile(current_user)}


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    patch: ProfileUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user = auth_service.update_profile(db, current_user, patch)
    return {"user": user}


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    auth_service.change_password(db, current_user, payload.current_password, payload.new_password)
    return {"message": "Password updated successfully"}


@router.delete("/account", response_model=MessageResponse)
def delete_account(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    auth_service.deactivate(db, current_user)
    return {"message": "Account deactivated successfully"}


@router.get("/orders", response_model=OrderListResponse)
def list_my_orders(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    orders = order_service.list_orders(db, current_user)
    return {"count": len(orders), "orders": orders}
