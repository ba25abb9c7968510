"""FastAPI application setup and configuration."""

import logging
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .api import api_router
from .database import init_database, close_database
from .middleware import ErrorHandlerMiddleware, LoggingMiddleware
from .middleware.error_handler import error_envelope
from .utils.exceptions import ValidationError
from .utils.logging_config import setup_logging

# Set up logging
setup_logging(
    log_level="DEBUG" if settings.debug else settings.log_level,
    log_file="logs/club_events.log" if settings.environment == "production" else None,
    enable_json_logging=settings.enable_json_logging or settings.environment == "production",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting Club Events Platform")
    await init_database()
    yield
    logger.info("Shutting down Club Events Platform")
    await close_database()


app = FastAPI(
    title="Club Events Platform API",
    description="""
    ## Club Events Platform

    Backend for a student club: members browse events and sign up for them,
    administrators run events, members and registrations.

    ### Authentication

    Sign-in is handled by the Identity Provider. Send its token as
    `Authorization: Bearer <token>` and call `POST /api/v1/users/sync` once
    after the first sign-in to create your member profile.

    ### Registration rules

    * Your profile needs year, department, roll number and mobile number
    * One confirmed registration per member and event
    * Events stop accepting sign-ups once full, closed or completed
    * Cancelling twice is harmless

    ### Error Handling

    ```json
    {
      "error": {
        "error_code": "PROFILE_INCOMPLETE",
        "message": "Please complete your profile before registering",
        "details": {"missing_fields": ["roll_no"]},
        "action": "complete_profile"
      }
    }
    ```
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "users", "description": "Member profile operations"},
        {"name": "events", "description": "Event listing and administration"},
        {"name": "registrations", "description": "Event sign-up and cancellation"},
        {"name": "announcements", "description": "Notices shown on the home page"},
        {"name": "inquiries", "description": "Contact form and admin inbox"},
        {"name": "winners", "description": "Competition winners board"},
        {"name": "glimpses", "description": "Photos from past events"},
        {"name": "health", "description": "Service health endpoints"},
    ],
    lifespan=lifespan,
)

# Middleware order: the last added runs first
app.add_middleware(
    ErrorHandlerMiddleware,
    debug=settings.debug
)

app.add_middleware(
    LoggingMiddleware,
    log_requests=settings.enable_request_logging,
    log_responses=settings.enable_request_logging
)

if settings.debug:
    # Credentials cannot be combined with wildcard origins
    cors_origins = ["*"]
    cors_allow_credentials = False
else:
    cors_origins = settings.cors_origins
    cors_allow_credentials = settings.cors_allow_credentials

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
    expose_headers=settings.cors_expose_headers
)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render request validation failures in the common error envelope."""
    field_errors = {}
    for error in exc.errors():
        field_path = ".".join(str(loc) for loc in error["loc"])
        field_errors.setdefault(field_path, []).append(error["msg"])

    error = ValidationError("Request validation failed", field_errors=field_errors)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_envelope(error, str(uuid4()))
    )


# Include API routes
app.include_router(api_router)


@app.get("/", tags=["health"])
async def root():
    """Basic information about the API."""
    return {
        "message": "Club Events Platform API",
        "version": "1.0.0",
        "docs_url": "/docs",
        "status": "operational"
    }


@app.get("/health", tags=["health"])
async def health_check():
    """Health check for uptime monitoring."""
    return {"status": "healthy", "service": "club-events-platform"}
