"""FastAPI application for the Wallet Service."""

from fastapi import FastAPI
from libs.common.errors import register_error_handlers
from libs.common.middleware import add_observability_middleware
from services.wallet_service.routers import admin_router, vendor_router


def create_app() -> FastAPI:
    """Create and configure the Wallet Service FastAPI app."""
    app = FastAPI(
        title="Vendor Wallet Service",
        version="0.1.0",
        description="Vendor wallet ledger and admin-approved top-ups.",
    )
    add_observability_middleware(app, service_name="wallet")
    register_error_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "wallet"}

    # Vendor-facing routes
    app.include_router(vendor_router)

    # Admin routes
    app.include_router(admin_router)

    return app


app = create_app()
