"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mashriq.config import settings
from mashriq.database import Base, engine
from mashriq.errors import DomainError, HoldNotFound

# Import routers
from mashriq.routers import users, services, wallets, orders, disputes, reviews, maintenance

# Import all models so Base.metadata knows about them
from mashriq.models.user import User                 # noqa: F401
from mashriq.models.service import Service           # noqa: F401
from mashriq.models.order import Order               # noqa: F401
from mashriq.models.order_event import OrderEvent    # noqa: F401
from mashriq.models.wallet import Wallet, WalletHold, LedgerEntry  # noqa: F401
from mashriq.models.review import Review             # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Mashriq Orders",
    description="Freelance marketplace order lifecycle and escrow settlement",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_KIND_BY_STATUS = {
    status.HTTP_403_FORBIDDEN: "Forbidden",
    status.HTTP_404_NOT_FOUND: "NotFound",
    status.HTTP_409_CONFLICT: "Conflict",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "InvalidArgument",
}


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if isinstance(exc, HoldNotFound):
        logger.error("%s %s failed: %s %s", request.method, request.url.path, exc, exc.context)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.kind, "message": exc.message},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": _KIND_BY_STATUS.get(exc.status_code, "HTTPError"),
            "message": str(exc.detail),
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "error": "InvalidArgument",
            "message": "Request validation failed",
            "details": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()
            ],
        },
    )


# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(services.router, prefix="/api/services", tags=["Services"])
app.include_router(wallets.router, prefix="/api/wallets", tags=["Wallets"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(disputes.router, prefix="/api/disputes", tags=["Disputes"])
app.include_router(reviews.router, prefix="/api/reviews", tags=["Reviews"])
app.include_router(maintenance.router, prefix="/api/maintenance", tags=["Maintenance"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"success": True, "status": "ok"}
