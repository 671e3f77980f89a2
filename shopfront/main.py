"""
Main FastAPI application.
- Preflight database test and storage initialisation before serving
- Service errors and unknown routes rendered as {"success": false, "error", "message"}
- Anything unexpected becomes a generic 500, details stay in the log
"""
from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy import text
from contextlib import asynccontextmanager
import logging

from shopfront.config import settings
from shopfront.database import Base, SessionLocal, engine, get_db, test_connection
from shopfront.errors import InternalError, InvalidNumber, MissingField, NotFound, ShopError
from shopfront.routers import auth, orders, pages, products
from shopfront.services import auth as auth_service
from shopfront.uploads import URL_PREFIX, init_upload_dirs, upload_root
from shopfront import models  # noqa: F401  registers tables on Base.metadata

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

NUMBER_ERROR_TYPES = frozenset([
    "decimal_parsing", "decimal_type", "float_parsing", "float_type",
    "int_parsing", "int_type", "int_from_float", "finite_number",
])


def init_storage(bind: Engine = None, session_factory=None) -> None:
    """
    One-time setup run before the server accepts connections.
    Every step is idempotent.
    """
    bind = bind or engine
    session_factory = session_factory or SessionLocal

    init_upload_dirs()
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables verified")

    if settings.ADMIN_USERNAME and settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        db = session_factory()
        try:
            auth_service.seed_admin(
                db, settings.ADMIN_USERNAME, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD
            )
        finally:
            db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION}")

    if settings.using_default_secret:
        logger.warning("SECRET_KEY is not set; using the built-in development key")

    success, message = test_connection()
    if not success:
        logger.error(f"Preflight test failed: {message}")
    else:
        logger.info(f"Preflight test passed: {message}")

    init_storage()

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")


app = FastAPI(
    title=settings.APP_NAME,
    description="Shop management API: users, catalog, stock and billing",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ====================
# ERROR HANDLING
# ====================

@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        error = NotFound("Route not found")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": "HTTPError", "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    types = {err.get("type") for err in errors}

    if "missing" in types:
        fields = [str(err["loc"][-1]) for err in errors if err.get("type") == "missing"]
        error = MissingField(f"Missing required fields: {', '.join(fields)}")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    if types & NUMBER_ERROR_TYPES:
        fields = [str(err["loc"][-1]) for err in errors if err.get("type") in NUMBER_ERROR_TYPES]
        error = InvalidNumber(f"Invalid number for: {', '.join(fields)}")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "ValidationError",
            "message": "Invalid request",
            "details": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                for err in errors
            ],
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# ====================
# ROUTES
# ====================

app.mount(URL_PREFIX, StaticFiles(directory=str(upload_root()), check_dir=False), name="uploads")

app.include_router(auth.router, prefix="/api")
app.include_router(products.router, prefix="/api")
app.include_router(orders.router, prefix="/api")
app.include_router(pages.router)


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Database probe; reports the failure instead of raising"""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        db_status = "error"
        logger.warning(f"Health check database error: {e}")

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "shopfront",
        "database": db_status,
        "version": settings.APP_VERSION,
    }


@app.get("/")
def root():
    return {
        "message": f"{settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "endpoints": {
            "docs": "/api/docs",
            "health": "/health",
            "user": "/api/user",
            "products": "/api/products",
            "orders": "/api/orders",
            "login": "/login",
        },
    }


def run():
    import uvicorn
    uvicorn.run("shopfront.main:app", host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
