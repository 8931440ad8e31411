"""FastAPI server for the development newsletter"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

# Load environment variables from .env before settings are read
load_dotenv()

from devdigest.api.middleware.auth import APIKeyAuth  # noqa: E402
from devdigest.api.routes.health import router as health_router  # noqa: E402
from devdigest.api.routes.newsletter import router as newsletter_router  # noqa: E402
from devdigest.api.routes.subscriptions import router as subscriptions_router  # noqa: E402
from devdigest.config import (  # noqa: E402
    API_HOST,
    API_PORT,
    APP_VERSION,
    SCHEDULE_ENABLED,
    is_production,
)
from devdigest.errors import RecipientStoreError  # noqa: E402
from devdigest.observability.logging import get_logger  # noqa: E402
from devdigest.observability.telemetry import counter  # noqa: E402
from devdigest.pipeline import Pipeline, build_pipeline  # noqa: E402
from devdigest.scheduler import WeeklyScheduler  # noqa: E402
from devdigest.storage.recipients import RecipientStore  # noqa: E402
from devdigest.utils.redaction import redact  # noqa: E402

logger = get_logger(__name__)


def create_app(
    store: RecipientStore | None = None,
    pipeline: Pipeline | None = None,
    auth: APIKeyAuth | None = None,
    enable_scheduler: bool = SCHEDULE_ENABLED,
) -> FastAPI:
    """
    Build the API application.

    Args:
        store: Recipient store (defaults to the configured subscribers file)
        pipeline: Newsletter pipeline (defaults to production wiring sharing ``store``)
        auth: Admin key checker for the manual trigger
        enable_scheduler: Start the weekly scheduler with the app lifespan
    """
    store = store or (pipeline.store if pipeline is not None else RecipientStore())
    pipeline = pipeline or build_pipeline(store=store)
    auth = auth or APIKeyAuth()

    if is_production() and not auth.configured:
        raise RuntimeError(
            "Security misconfiguration: DEVDIGEST_ADMIN_API_KEY not set in "
            "production. Refusing to start with an unprotected send endpoint."
        )

    scheduler = WeeklyScheduler(pipeline.run_cycle) if enable_scheduler else None

    @contextlib.asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if scheduler is not None:
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()

    app = FastAPI(title="Development Newsletter API", version=APP_VERSION, lifespan=lifespan)
    app.state.store = store
    app.state.pipeline = pipeline
    app.state.auth = auth
    app.state.scheduler = scheduler

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Sanitized validation errors; full detail only goes to the log."""
        logger.warning("Validation error on %s: %s", redact(str(request.url)), exc.errors())
        counter("api.validation_errors")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": "Invalid request format. Please check your request and try again.",
                "error_count": len(exc.errors()),
                "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
            },
        )

    @app.exception_handler(RecipientStoreError)
    async def store_error_handler(request: Request, exc: RecipientStoreError) -> JSONResponse:
        logger.error("Subscriber store error on %s: %s", request.url.path, exc)
        counter("api.store_errors")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Error processing subscription"},
        )

    app.include_router(subscriptions_router)
    app.include_router(newsletter_router)
    app.include_router(health_router)
    return app


def main() -> None:
    import uvicorn

    logger.info("Server starting at http://%s:%s", API_HOST, API_PORT)
    uvicorn.run(create_app(), host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    main()
