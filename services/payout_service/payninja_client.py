"""
PayNinja payout API client.

Provides async methods for:
- Submitting a fund transfer (UPI / IMPS / NEFT)
- Querying a transfer's status by merchant reference id
- Reading the merchant float balance

Transport problems (network errors, timeouts, 5xx) raise
``ProviderTransportError``; a request the provider answered but refused
raises ``ProviderRequestError``. Callers decide what either means for the
ledger.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol

import httpx
from libs.common.config import get_settings
from libs.common.currency import format_amount, quantize_amount
from libs.common.errors import InvalidAmount
from libs.common.logging import get_logger

logger = get_logger(__name__)

settings = get_settings()

INITIATE_PATH = "/api/v1/payout/initiate"
STATUS_PATH = "/api/v1/payout/status"
BALANCE_PATH = "/api/v1/payout/balance"

# Provider status vocabulary, normalized to lower case
PROVIDER_SUCCESS = "success"
PROVIDER_PENDING = "pending"
PROVIDER_PROCESSING = "processing"
PROVIDER_FAILED = "failed"
PROVIDER_REVERSED = "reversed"
PROVIDER_NOT_FOUND = "not_found"

_STATUS_ALIASES = {
    "completed": PROVIDER_SUCCESS,
    "initiated": PROVIDER_PROCESSING,
    "accepted": PROVIDER_PROCESSING,
    "in_process": PROVIDER_PROCESSING,
    "rejected": PROVIDER_FAILED,
    "failure": PROVIDER_FAILED,
    "notfound": PROVIDER_NOT_FOUND,
    "not found": PROVIDER_NOT_FOUND,
}


@dataclass
class TransferSubmission:
    """Provider acknowledgement of a submitted transfer (not settlement)."""

    accepted: bool
    provider_transaction_id: Optional[str] = None
    status: Optional[str] = None
    utr: Optional[str] = None
    message: Optional[str] = None


@dataclass
class TransferStatus:
    """Current provider view of a transfer."""

    status: str  # success, pending, processing, failed, reversed, not_found
    utr: Optional[str] = None
    error: Optional[str] = None
    provider_transaction_id: Optional[str] = None


@dataclass
class ProviderBalance:
    balance: Decimal
    currency: str


class ProviderError(Exception):
    """Base exception for PayNinja API errors."""

    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


class ProviderTransportError(ProviderError):
    """The provider could not be reached or did not answer usably."""


class ProviderRequestError(ProviderError):
    """The provider answered and refused the request."""


class PaymentRailProvider(Protocol):
    """Contract the payout engine expects from a payment rail."""

    async def submit_transfer(
        self,
        beneficiary_details: dict,
        amount: Decimal,
        reference: str,
        narration: str,
    ) -> TransferSubmission: ...

    async def query_status(self, reference: str) -> TransferStatus: ...

    async def get_account_balance(self) -> ProviderBalance: ...


def normalize_status(raw: Optional[str]) -> str:
    value = str(raw or "").strip().lower()
    return _STATUS_ALIASES.get(value, value or PROVIDER_PENDING)


def build_transfer_payload(
    beneficiary_details: dict, amount: Decimal, reference: str, narration: str
) -> dict:
    """Map a beneficiary snapshot onto PayNinja's ``ben_*`` request fields."""
    transfer_type = beneficiary_details["transfer_type"]
    payload = {
        "ben_name": beneficiary_details["name"],
        "ben_phone_number": str(beneficiary_details["phone_number"]),
        "amount": format_amount(amount),
        "merchant_reference_id": reference,
        "transfer_type": transfer_type,
        "narration": narration,
    }
    if transfer_type == "UPI":
        payload["ben_vpa_address"] = beneficiary_details["vpa_address"]
    else:
        payload["ben_account_number"] = str(beneficiary_details["account_number"])
        payload["ben_ifsc"] = beneficiary_details["ifsc"]
        payload["ben_bank_name"] = beneficiary_details["bank_name"]
    return payload


def _data_section(response: dict) -> dict:
    """The ``data`` object of a decoded response; anything else is unusable."""
    body = response.get("data") or {}
    if not isinstance(body, dict):
        raise ProviderTransportError(
            "Provider response carries a malformed data section",
            response_data=response,
        )
    return body


class PayNinjaClient:
    """Async client for the PayNinja payout API."""

    def __init__(
        self,
        api_key: str = None,
        secret_key: str = None,
        base_url: str = None,
        timeout: float = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.api_key = api_key or settings.PAYNINJA_API_KEY
        self.secret_key = secret_key or settings.PAYNINJA_SECRET_KEY
        if not self.api_key or not self.secret_key:
            raise ValueError("PAYNINJA_API_KEY and PAYNINJA_SECRET_KEY are required")
        self.base_url = (base_url or settings.PAYNINJA_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.PAYOUT_PROVIDER_TIMEOUT_SECONDS
        self._transport = transport
        self._headers = {
            "api-Key": self.api_key,
            "secret-key": self.secret_key,
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: dict = None,
        allow_not_found: bool = False,
    ) -> dict:
        """Make an async request to the PayNinja API."""
        url = f"{self.base_url}{endpoint}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self._headers,
                    json=json_data,
                )
        except httpx.TimeoutException as exc:
            logger.error("PayNinja %s %s timed out: %s", method, endpoint, exc)
            raise ProviderTransportError(f"Provider timed out: {exc}")
        except httpx.HTTPError as exc:
            logger.error("PayNinja %s %s transport error: %s", method, endpoint, exc)
            raise ProviderTransportError(f"Provider unreachable: {exc}")

        if response.status_code >= 500:
            logger.error(
                "PayNinja API error: %d - %s", response.status_code, response.text
            )
            raise ProviderTransportError(
                f"Provider returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            raise ProviderTransportError(
                "Provider returned a non-JSON response",
                status_code=response.status_code,
            )

        if not isinstance(data, dict):
            logger.error(
                "PayNinja %s %s returned a non-object body: %r", method, endpoint, data
            )
            raise ProviderTransportError(
                "Provider returned an unexpected response body",
                status_code=response.status_code,
            )

        if response.status_code == 404 and allow_not_found:
            return {"status": PROVIDER_NOT_FOUND, "data": {}}

        if not response.is_success:
            logger.error("PayNinja API error: %d - %s", response.status_code, data)
            raise ProviderRequestError(
                message=data.get("message", "Unknown PayNinja error"),
                status_code=response.status_code,
                response_data=data,
            )

        return data

    async def submit_transfer(
        self,
        beneficiary_details: dict,
        amount: Decimal,
        reference: str,
        narration: str,
    ) -> TransferSubmission:
        """
        Submit a fund transfer.

        ``accepted`` reflects the provider taking the request, not settlement;
        final status arrives via :meth:`query_status`.
        """
        payload = build_transfer_payload(
            beneficiary_details, amount, reference, narration
        )
        data = await self._request("POST", INITIATE_PATH, json_data=payload)

        body = _data_section(data)
        outcome = str(data.get("status", "")).lower()
        transfer_status = normalize_status(body.get("status") or outcome)
        accepted = outcome not in {"failed", "error", "failure"} and (
            transfer_status not in {PROVIDER_FAILED, PROVIDER_REVERSED}
        )

        return TransferSubmission(
            accepted=accepted,
            provider_transaction_id=body.get("transaction_id")
            or body.get("provider_transaction_id"),
            status=transfer_status,
            utr=body.get("utr") or None,
            message=data.get("message"),
        )

    async def query_status(self, reference: str) -> TransferStatus:
        """Check the status of a transfer by merchant reference id."""
        data = await self._request(
            "POST",
            STATUS_PATH,
            json_data={"merchant_reference_id": reference},
            allow_not_found=True,
        )

        body = _data_section(data)
        if data.get("status") == PROVIDER_NOT_FOUND:
            return TransferStatus(status=PROVIDER_NOT_FOUND, error="Transfer not found")

        return TransferStatus(
            status=normalize_status(body.get("status")),
            utr=body.get("utr") or None,
            error=body.get("failure_reason") or body.get("error"),
            provider_transaction_id=body.get("transaction_id"),
        )

    async def get_account_balance(self) -> ProviderBalance:
        """Get the merchant float balance held at PayNinja."""
        data = await self._request("GET", BALANCE_PATH)

        body = _data_section(data)
        try:
            balance = quantize_amount(str(body.get("balance", "0")))
        except InvalidAmount:
            raise ProviderTransportError(
                "Provider returned an unreadable balance", response_data=data
            )
        return ProviderBalance(
            balance=balance, currency=body.get("currency") or settings.WALLET_CURRENCY
        )


def get_payout_provider() -> PaymentRailProvider:
    """Get the configured payout provider. Overridden in tests."""
    return PayNinjaClient()
