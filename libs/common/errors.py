"""Typed domain errors shared by the wallet, vendor and payout services.

Service functions raise these instead of ``HTTPException`` so that callers
outside the HTTP layer (workers, scripts, tests) get a precise error kind.
Each FastAPI app renders them through :func:`register_error_handlers`.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from libs.common.logging import get_logger

logger = get_logger(__name__)


class ServiceError(Exception):
    """Base class. ``code`` is the stable, machine-readable error kind."""

    code = "service_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be completed"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload = {"detail": self.message, "code": self.code}
        payload.update({k: _jsonable(v) for k, v in self.context.items()})
        return payload


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, bool)) or value is None:
        return value
    return str(value)


# Validation (rejected before any ledger mutation)


class InvalidAmount(ServiceError):
    code = "invalid_amount"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Amount must be a positive value with at most 2 decimal places"


class IncompleteBeneficiary(ServiceError):
    code = "incomplete_beneficiary"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Beneficiary details are incomplete"


class ModeMismatch(ServiceError):
    code = "mode_mismatch"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Transfer type does not match the beneficiary destination"


class DuplicateReference(ServiceError):
    code = "duplicate_reference"
    status_code = status.HTTP_409_CONFLICT
    default_message = "A payout with this merchant reference id already exists"


class InvalidRequest(ServiceError):
    code = "invalid_request"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Invalid request"


# State conflicts


class InsufficientFunds(ServiceError):
    code = "insufficient_funds"
    default_message = "Wallet balance is too low for this payout"


class AlreadyResolved(ServiceError):
    code = "already_resolved"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Top-up request has already been processed"


class AlreadyReversed(ServiceError):
    code = "already_reversed"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Ledger entry has already been reversed"


class BeneficiaryInUse(ServiceError):
    code = "beneficiary_in_use"
    status_code = status.HTTP_409_CONFLICT
    default_message = (
        "Beneficiary is referenced by existing payouts; deactivate it instead"
    )


class BeneficiaryInactive(ServiceError):
    code = "beneficiary_inactive"
    default_message = "Beneficiary is deactivated"


class NotFound(ServiceError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class Unauthorized(ServiceError):
    code = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed to perform this operation"


# Provider interaction (compensating reversal already applied when raised)


class ProviderUnreachable(ServiceError):
    code = "provider_unreachable"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Payment provider could not be reached"


class ProviderRejected(ServiceError):
    code = "provider_rejected"
    default_message = "Payment provider rejected the transfer"


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.info(
        "%s on %s %s: %s",
        exc.code,
        request.method,
        request.url.path,
        exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    """Render every :class:`ServiceError` as ``{"detail", "code", ...}``."""
    app.add_exception_handler(ServiceError, _service_error_handler)
