"""
FastAPI application entry point for the Message Management API.

Serves read-only access to IoT messages stored in MongoDB or Firestore:
- Single message lookup
- Per-device message listing with range/sort pagination
- Per-device aggregated statistics
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .application.services import AccessResolver, MessageService
from .config import AppSettings, DatabaseProvider, get_settings
from .domain.exceptions import DomainException
from .infrastructure.database.connection import FirestoreManager, MongoDBManager
from .infrastructure.database.repositories import RepositoryFactory
from .infrastructure.external import IdentityPlatformClient, ProjectServiceClient

logger = logging.getLogger(__name__)

# Non-standard status used when the client went away mid-request
HTTP_499_CLIENT_CLOSED_REQUEST = 499


def configure_logging(settings: AppSettings) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def build_lifespan(settings: AppSettings):
    """Create the lifespan handler bound to the given settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        """
        Application lifespan handler.

        Connects the configured store and the upstream clients on startup,
        releases them on shutdown.
        """
        configure_logging(settings)
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Environment: {settings.environment}")

        factory = RepositoryFactory(settings.database)
        mongo_database = None
        firestore_client = None

        try:
            if factory.provider is DatabaseProvider.MONGO:
                mongo_database = await MongoDBManager.connect(settings.database)
            else:
                firestore_client = FirestoreManager.connect(settings.firebase)
        except Exception as e:
            logger.error(f"Database initialization failed: {e}")
            raise

        identity_client = IdentityPlatformClient(settings.auth)
        project_client = ProjectServiceClient(settings.project_service)

        try:
            repositories = factory.create(
                mongo_database=mongo_database,
                firestore_client=firestore_client,
            )

            await identity_client.connect()
            await project_client.connect()

            app.state.settings = settings
            app.state.identity_client = identity_client
            app.state.message_service = MessageService(
                message_repo=repositories.messages,
                aggregation_repo=repositories.aggregations,
                access_resolver=AccessResolver(project_client),
            )

            yield
        finally:
            logger.info("Shutting down application...")
            await identity_client.disconnect()
            await project_client.disconnect()
            if factory.provider is DatabaseProvider.MONGO:
                await MongoDBManager.close()
            else:
                FirestoreManager.close()
            logger.info("Shutdown complete")

    return lifespan


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="IoT message management API",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=build_lifespan(settings),
    )
    app.state.settings = settings

    # Content-Range must be readable by browser clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
        expose_headers=["Content-Length", "Content-Range"],
    )

    register_exception_handlers(app)
    register_routes(app, settings)

    return app


def _domain_error(
    request: Request,
    exc: DomainException,
    status_code: int,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    logger.info(
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}"
        + (f" {exc.details}" if exc.details else "")
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    from .domain.exceptions import (
        AuthenticationException,
        AuthorizationException,
        EntityNotFoundException,
        RequestCancelledException,
        UpstreamServiceException,
        ValidationException,
    )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException):
        return _domain_error(request, exc, status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(ValidationException)
    async def validation_handler(request: Request, exc: ValidationException):
        return _domain_error(request, exc, status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(AuthenticationException)
    async def authentication_handler(request: Request, exc: AuthenticationException):
        return _domain_error(
            request, exc, status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AuthorizationException)
    async def authorization_handler(request: Request, exc: AuthorizationException):
        return _domain_error(request, exc, status.HTTP_403_FORBIDDEN)

    @app.exception_handler(EntityNotFoundException)
    async def not_found_handler(request: Request, exc: EntityNotFoundException):
        return _domain_error(request, exc, status.HTTP_404_NOT_FOUND)

    @app.exception_handler(UpstreamServiceException)
    async def upstream_handler(request: Request, exc: UpstreamServiceException):
        logger.error(f"{exc.code} ({exc.service}): {exc.message} {exc.details}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "failed to resolve user permissions"},
        )

    @app.exception_handler(RequestCancelledException)
    async def cancelled_handler(request: Request, exc: RequestCancelledException):
        return _domain_error(request, exc, HTTP_499_CLIENT_CLOSED_REQUEST)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = errors[0].get("msg", "invalid request") if errors else "invalid request"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": detail},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "An internal error occurred"},
        )


def register_routes(app: FastAPI, settings: AppSettings) -> None:
    """Register API routes."""

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Check application health."""
        if settings.database.provider is DatabaseProvider.MONGO:
            db_ok = await MongoDBManager.ping()
        else:
            db_ok = FirestoreManager.is_connected()

        return {
            'status': 'healthy' if db_ok else 'degraded',
            'services': {
                'database': 'up' if db_ok else 'down',
            },
            'provider': settings.database.provider.value,
            'version': settings.app_version,
            'environment': settings.environment,
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint."""
        return {
            'name': settings.app_name,
            'version': settings.app_version,
            'api_docs': '/docs' if settings.debug else None,
        }

    from .api.v1 import messages_router

    main_router = APIRouter(prefix=settings.api_prefix)
    main_router.include_router(messages_router)

    app.include_router(main_router)


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "message_mng.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.reload,
    )
