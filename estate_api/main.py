"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
import logging

from estate_api.config import settings
from estate_api.database import Database, get_database
from estate_api.routers import auth_router, listing_router, user_router
from estate_api.utils.exceptions import APIException
from estate_api.services.error_handler import ErrorHandlerService
from estate_api.services.storage import StagedImageStore

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Opens the database handle and purges abandoned staged uploads on startup;
    disposes the database handle on shutdown.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    database = Database(settings.database_url, echo=settings.debug)
    database.connect()
    app.state.database = database

    if await database.ping():
        await database.create_tables()
    else:
        logger.error("Failed to connect to database on startup")

    await StagedImageStore.from_settings(settings).purge_stale()

    yield

    logger.info("Shutting down application")
    await database.dispose()


# Create FastAPI application instance
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Real-estate listing API.

    ## Features

    * **Accounts**: password sign-up/sign-in and federated sign-in
    * **Listings**: owner-only create, update and delete
    * **Images**: ordered image sets of staged uploads and existing URLs; the first image is the cover
    * **Search**: filter by name, offer, furnishing, parking and type, sort by date or price

    ## Authentication

    Sign in through `/api/auth/signin` or `/api/auth/google`. The identity token is set as an
    HTTP-only `access_token` cookie and read from there on every protected route.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Authentication",
            "description": "Sign-up, sign-in and sign-out"
        },
        {
            "name": "Listings",
            "description": "Listing management, image staging and search"
        },
        {
            "name": "Users",
            "description": "Profile management"
        },
        {
            "name": "Health",
            "description": "System health endpoints"
        }
    ],
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(listing_router, prefix=settings.api_prefix)
app.include_router(user_router, prefix=settings.api_prefix)

# Published listing images
if settings.public_media_url.startswith("/"):
    app.mount(
        settings.public_media_url,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="media"
    )


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle custom API exceptions with structured error responses."""
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc.errors(), request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    return ErrorHandlerService.handle_validation_error(exc.errors(), request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle framework HTTP exceptions with structured error responses."""
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/health", tags=["Health"])
async def health_check(database: Database = Depends(get_database)):
    """
    Health check endpoint with database connectivity test.
    Used by container health checks and load balancers.
    """
    if not await database.ping():
        raise HTTPException(status_code=503, detail="Database connection failed")

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "estate_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
