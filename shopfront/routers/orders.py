from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shopfront.database import get_db
from shopfront import models
from shopfront.schemas.order import OrderCreate, OrderResponse
from shopfront.security import get_current_user
from shopfront.services import orders as order_service

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def place_order(
    payload: OrderCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    order = order_service.place_order(db, current_user, payload.items)
    return {"message": "Order placed successfully", "order": order}


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    order = order_service.get_order(db, current_user, order_id)
    return {"message": "Order fetched successfully", "order": order}
