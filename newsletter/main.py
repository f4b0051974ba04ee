import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError

from newsletter.api import subscriptions
from newsletter.config import get_settings
from newsletter.database import dispose_engine, init_db
from newsletter.errors import SubscriptionServiceError, error_chain, is_client_error
from newsletter.logging_config import configure_logging
from newsletter.middleware.request_id import RequestIdMiddleware
from newsletter.services.email_client import close_email_client

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # Production schemas come from Alembic; SQLite databases are created on the fly
    if settings.use_sqlite:
        await init_db()
        logger.info("Database initialized")

    yield

    await close_email_client()
    await dispose_engine()
    logger.info("Shutting down...")


async def subscription_error_handler(request: Request, exc: SubscriptionServiceError) -> Response:
    """Log the failure with its full cause chain and answer with a bare status code."""
    if is_client_error(exc):
        logger.warning(
            "Request rejected",
            error=type(exc).__name__,
            status_code=exc.status_code,
            error_chain=error_chain(exc),
        )
    else:
        logger.error(
            "Request failed",
            error=type(exc).__name__,
            status_code=exc.status_code,
            error_chain=error_chain(exc),
            exc_info=exc,
        )
    return Response(status_code=exc.status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    """Missing or malformed form/query fields are the client's fault: 400, not 422."""
    missing = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
    logger.warning("Malformed request", fields=missing)
    return Response(status_code=status.HTTP_400_BAD_REQUEST)


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Newsletter API",
        description="Newsletter subscriptions with email confirmation",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(SubscriptionServiceError, subscription_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(subscriptions.router)

    @app.get("/health_check")
    async def health_check():
        return Response(status_code=status.HTTP_200_OK)

    return app


app = create_app()
