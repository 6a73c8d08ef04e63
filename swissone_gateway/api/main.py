"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from swissone_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from swissone_gateway.api.v1 import accounts, admin, analytics, history, transfers
from swissone_gateway.infrastructure.observability.logging import setup_logging
from swissone_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="SwissOne Banking Gateway",
        description="Account overview, transfers, deposits and spending analytics",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(analytics.router, prefix="/v1", tags=["analytics"])
    app.include_router(transfers.router, prefix="/v1", tags=["transfers"])
    app.include_router(history.router, prefix="/v1", tags=["history"])
    app.include_router(admin.router, prefix="/v1", tags=["admin"])

    return app


app = create_app()
