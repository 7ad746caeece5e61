"""FastAPI application for the Vendor Service."""

from fastapi import FastAPI
from libs.common.errors import register_error_handlers
from libs.common.middleware import add_observability_middleware
from services.vendor_service.router import admin_router, router


def create_app() -> FastAPI:
    """Create and configure the Vendor Service FastAPI app."""
    app = FastAPI(
        title="Vendor Service",
        version="0.1.0",
        description="Vendor registration and account status management.",
    )
    add_observability_middleware(app, service_name="vendor")
    register_error_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "vendor"}

    app.include_router(router)
    app.include_router(admin_router)

    return app


app = create_app()
