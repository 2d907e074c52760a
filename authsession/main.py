from fastapi import FastAPI, Request
from fastapi.concurrency import asynccontextmanager
from fastapi.responses import JSONResponse
from loguru import logger
from starlette import status

from authsession.api.routes import api_router
from authsession.core.config import Environment, Settings
from authsession.core.config import get_settings
from authsession.core.exceptions.base import CustomException
from authsession.core.exceptions.key_value import StoreError
from authsession.core.exceptions.session import TokenEncodeError, UserLookupError
from authsession.core.logger import configure_std_logging, setup_logger, shutdown_logger
from authsession.middleware.logging import LoggingMiddleware
from authsession.middleware.rate_limit import RateLimitHeaderMiddleware
from authsession.middleware.session import SessionMiddleware
from authsession.services import Services, build_services
from authsession.services.clock import Clock
from authsession.services.key_value import KeyValueStore
from authsession.services.random import RandomSource
from authsession.services.users import UserLookup

ALLOWED_ENVIRONMENTS = {Environment.LOCAL, Environment.DEV, Environment.STG}


async def _check_dependencies(services: Services):
    """Check essential dependencies before starting the app"""

    is_healthy = await services.store.health_check()

    if not is_healthy:
        logger.error("Key-value store health check failed. Exiting application.")
        raise RuntimeError("Key-value store is not healthy.")

    logger.success("Key-value store is healthy.")


async def _shutdown_dependencies(services: Services):
    """Shutdown essential dependencies gracefully"""

    await services.store.close()
    logger.success("Key-value store connection closed.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""

    setup_logger(app.state.services.settings)
    configure_std_logging()

    services: Services = app.state.services

    logger.info("Initializing resources...")
    await _check_dependencies(services)
    logger.success("Resources initialized.")

    yield  # Application runs here

    logger.info("Cleaning up resources...")
    await _shutdown_dependencies(services)
    shutdown_logger()
    logger.success("Resources cleaned up.")


async def backend_error_handler(request: Request, exc: CustomException) -> JSONResponse:
    """Infrastructure failures raised while an endpoint runs"""
    logger.error(f"{request.method} {request.url.path} - {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Session backend unavailable"},
    )


def create_app(
    user_lookup: UserLookup,
    settings: Settings | None = None,
    store: KeyValueStore | None = None,
    clock: Clock | None = None,
    random_source: RandomSource | None = None,
) -> FastAPI:
    """
    Build the application with its session services

    Args:
        user_lookup: User read access provided by the host application
        settings: Application settings, read from the environment when omitted
        store: Key-value store, picked from the environment when omitted
        clock: Time source, wall clock when omitted
        random_source: Randomness, ``secrets``-backed when omitted

    Returns:
        FastAPI: The application
    """
    settings = settings or get_settings()
    show_docs = settings.current_environment in ALLOWED_ENVIRONMENTS

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        description=settings.app_description,
        openapi_url="/openapi.json" if show_docs else None,
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
        lifespan=lifespan,
        generate_unique_id_function=lambda route: f"{route.tags[0]}-{route.name}",
    )

    app.state.services = build_services(
        settings,
        user_lookup,
        store=store,
        clock=clock,
        random_source=random_source,
    )

    for exc_class in (StoreError, UserLookupError, TokenEncodeError):
        app.add_exception_handler(exc_class, backend_error_handler)

    # Last added runs first: logging wraps session resolution
    app.add_middleware(RateLimitHeaderMiddleware)
    app.add_middleware(SessionMiddleware)
    app.add_middleware(LoggingMiddleware)

    app.include_router(api_router)

    return app
