"""FastAPI application for the Payout Service."""

from fastapi import FastAPI
from libs.common.errors import register_error_handlers
from libs.common.middleware import add_observability_middleware
from services.payout_service.routers import (
    admin_router,
    beneficiaries_router,
    overview_router,
    payouts_router,
)


def create_app() -> FastAPI:
    """Create and configure the Payout Service FastAPI app."""
    app = FastAPI(
        title="Vendor Payout Service",
        version="0.1.0",
        description="Beneficiaries, wallet-funded payouts and provider reconciliation.",
    )
    add_observability_middleware(app, service_name="payout")
    register_error_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "payout"}

    # Vendor-facing routes
    app.include_router(beneficiaries_router)
    app.include_router(payouts_router)

    # Admin routes
    app.include_router(admin_router)
    app.include_router(overview_router)

    return app


app = create_app()
