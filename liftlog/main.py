from fastapi import FastAPI, Request
from loguru import logger

from liftlog.api.readiness import router as readiness_router
from liftlog.config.settings import settings
from liftlog.core.logger import configure_logging


def create_app() -> FastAPI:
    """Create the FastAPI application with the readiness router mounted."""
    app = FastAPI(title="liftlog", description="Fatigue and readiness engine for a strength-training log")
    app.include_router(readiness_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests."""
        logger.debug(f"Request: {request.method} {request.url.path}")
        response = await call_next(request)
        logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
        return response

    logger.info("FastAPI application initialized")
    return app


configure_logging(settings)
app = create_app()
