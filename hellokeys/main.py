import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Import all models to ensure they're registered with SQLAlchemy Base
from . import (
    models,  # noqa: F401
    models_invoice,  # noqa: F401
    models_netatmo,  # noqa: F401
)
from .database import Base, engine
from .domain.documents.router import router as documents_router
from .domain.payouts.router import router as stripe_router
from .domain.price_overrides.router import router as price_overrides_router
from .domain.rooms.router import router as rooms_router
from .domain.statements.router import router as statements_router
from .routes.accountant import router as accountant_router
from .routes.admin_users import router as admin_users_router
from .routes.bilan import router as bilan_router
from .routes.changelog import router as changelog_router
from .routes.ecowatt import router as ecowatt_router
from .routes.email import router as email_router
from .routes.expenses import router as expenses_router
from .routes.faq import router as faq_router
from .routes.hivernage import router as hivernage_router
from .routes.ideas import router as ideas_router
from .routes.marketplace import router as marketplace_router
from .routes.modules import router as modules_router
from .routes.netatmo import router as netatmo_router
from .routes.notifications import router as notifications_router
from .routes.pennylane import router as pennylane_router
from .routes.profile import router as profile_router
from .routes.reviews import router as reviews_router
from .routes.support import router as support_router
from .routes.verification import router as verification_router
from .services.errors import IntegrationError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    try:
        from .rate_limiter import get_redis_client

        get_redis_client()  # Connection test
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed - public endpoints will be refused: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Hello Keys Owner API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(IntegrationError)
async def integration_exception_handler(request: Request, exc: IntegrationError):
    logger.error(f"❌ Integration error on {request.url.path} ({exc.status_code}): {exc.message}")
    content = {"error": exc.message}
    if exc.details is not None:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "https://beta.proprietaire.hellokeys.fr,http://localhost:5173,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["X-Cache", "X-Original-Status", "Retry-After"],
)

# Routes
app.include_router(profile_router)
app.include_router(rooms_router)
app.include_router(statements_router)
app.include_router(documents_router)
app.include_router(changelog_router)
app.include_router(faq_router)
app.include_router(marketplace_router)
app.include_router(price_overrides_router)
app.include_router(hivernage_router)
app.include_router(modules_router)
app.include_router(expenses_router)
app.include_router(accountant_router)
app.include_router(ideas_router)
app.include_router(notifications_router)
app.include_router(stripe_router)
app.include_router(verification_router)
app.include_router(email_router)
app.include_router(netatmo_router)
app.include_router(ecowatt_router)
app.include_router(reviews_router)
app.include_router(pennylane_router)
app.include_router(support_router)
app.include_router(bilan_router)
app.include_router(admin_users_router)


@app.get("/")
def root():
    return {"message": "Hello Keys API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
