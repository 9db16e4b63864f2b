from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError
from contextlib import asynccontextmanager
import logging
import os

from core.config import settings
from core.database import initialize_db, db_manager
from core.logging_config import setup_logging
from core.middleware import RequestLoggingMiddleware
# Import exceptions and handlers
from core.exceptions import (
    APIException,
    api_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    sqlalchemy_exception_handler,
    general_exception_handler
)
from routes import auth_router, delivery_methods_router, files_router, health_router
from services.delivery_methods import DeliveryMethodService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup event
    setup_logging(settings.LOG_LEVEL)
    logger.info(f"Starting Delivery Admin API ({settings.ENVIRONMENT})")

    initialize_db(settings.SQLALCHEMY_DATABASE_URI, settings.ENVIRONMENT == "local")
    await db_manager.create_tables()

    if settings.SEED_DELIVERY_METHODS:
        async with db_manager.session_factory() as db:
            inserted = await DeliveryMethodService(db).ensure_seeded()
        if inserted:
            logger.info(f"Seeded {inserted} default delivery methods on startup")

    yield
    # Shutdown event
    await db_manager.dispose()
    logger.info("Database connections closed")


app = FastAPI(
    title="Delivery Admin API",
    description="Admin backend for the storefront's delivery method catalog.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request logging, auth headers redacted
app.add_middleware(RequestLoggingMiddleware)

app.include_router(auth_router)
app.include_router(delivery_methods_router)
app.include_router(files_router)
app.include_router(health_router)

# Uploaded images are served by the bucket or a reverse proxy in production
if settings.ENVIRONMENT != "production":
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/")
async def read_root():
    return {
        "service": "Delivery Admin API",
        "status": "Running",
        "version": "1.0.0",
    }


# Register exception handlers
app.add_exception_handler(APIException, api_exception_handler)
app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)
