"""
Server-rendered login, signup and landing pages.
The session token lives in an http-only cookie named "token".
"""
from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.orm import Session
from pathlib import Path
import logging

from shopfront import models
from shopfront.config import settings
from shopfront.database import get_db
from shopfront.errors import ShopError, Unauthorized
from shopfront.forms import LoginForm, SignupForm, validate_form
from shopfront.schemas.user import RegisterRequest
from shopfront.security import user_from_token
from shopfront.services import auth as auth_service
from shopfront.services import catalog

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))
router = APIRouter(tags=["pages"], include_in_schema=False)

TOKEN_COOKIE = "token"
HOME_BY_ROLE = {
    models.ROLE_SHOPKEEPER: "/shop",
    models.ROLE_CUSTOMER: "/customer/home",
    models.ROLE_ADMIN: "/admin/dashboard",
}


def home_for(role: str) -> str:
    return HOME_BY_ROLE.get(role, "/")


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


# -----------------------------
# Login
# -----------------------------
@router.get("/login")
def login_page(request: Request, registered: bool = False):
    return templates.TemplateResponse(
        request, "login.html", {"errors": {}, "values": {}, "registered": registered}
    )


@router.post("/login")
def login_submit(
    request: Request,
    login: str = Form(""),
    password: str = Form(""),
    role: str = Form("customer"),
    db: Session = Depends(get_db)
):
    values = {"login": login, "role": role}
    form, errors = validate_form(LoginForm, {"login": login, "password": password, "role": role})
    if errors:
        return templates.TemplateResponse(
            request, "login.html", {"errors": errors, "values": values, "registered": False},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        token, user = auth_service.login(db, form.login, form.password, form.role)
    except ShopError as e:
        return templates.TemplateResponse(
            request, "login.html",
            {"errors": {"general": e.message}, "values": values, "registered": False},
            status_code=e.status_code,
        )

    response = _redirect(home_for(user.role))
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        httponly=True,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return response


@router.get("/logout")
def logout():
    response = _redirect("/login")
    response.delete_cookie(TOKEN_COOKIE)
    return response


# -----------------------------
# Signup
# -----------------------------
@router.get("/signup")
def signup_page(request: Request):
    return templates.TemplateResponse(request, "signup.html", {"errors": {}, "values": {}})


@router.post("/signup")
def signup_submit(
    request: Request,
    user_type: str = Form("customer"),
    first_name: str = Form(""),
    last_name: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    store_name: str = Form(""),
    address: str = Form(""),
    db: Session = Depends(get_db)
):
    values = {
        "user_type": user_type,
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "phone": phone,
        "store_name": store_name,
        "address": address,
    }
    form, errors = validate_form(
        SignupForm, dict(values, password=password, confirm_password=confirm_password)
    )
    payload = None
    if form is not None:
        try:
            payload = RegisterRequest(**form.to_registration())
        except ValidationError:
            errors = {"email": "Invalid email"}

    if errors:
        return templates.TemplateResponse(
            request, "signup.html", {"errors": errors, "values": values},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        auth_service.register(db, payload)
    except ShopError as e:
        return templates.TemplateResponse(
            request, "signup.html", {"errors": {"general": e.message}, "values": values},
            status_code=e.status_code,
        )
    return _redirect("/login?registered=1")


# -----------------------------
# Landing pages
# -----------------------------
def _page_user(request: Request, db: Session):
    try:
        return user_from_token(db, request.cookies.get(TOKEN_COOKIE))
    except Unauthorized:
        return None


def _dashboard(request: Request, db: Session, role: str, title: str):
    user = _page_user(request, db)
    if user is None:
        return _redirect("/login")
    if user.role != role and user.role != models.ROLE_ADMIN:
        return _redirect(home_for(user.role))

    owner_id = user.id if user.role == models.ROLE_SHOPKEEPER else None
    products = catalog.list_products(db, shopkeeper_id=owner_id)
    return templates.TemplateResponse(
        request, "dashboard.html", {"user": user, "title": title, "products": products}
    )


@router.get("/shop")
def shop_dashboard(request: Request, db: Session = Depends(get_db)):
    return _dashboard(request, db, models.ROLE_SHOPKEEPER, "My Shop")


@router.get("/customer/home")
def customer_home(request: Request, db: Session = Depends(get_db)):
    return _dashboard(request, db, models.ROLE_CUSTOMER, "Products")


@router.get("/admin/dashboard")
def admin_dashboard(request: Request, db: Session = Depends(get_db)):
    return _dashboard(request, db, models.ROLE_ADMIN, "Admin Dashboard")
