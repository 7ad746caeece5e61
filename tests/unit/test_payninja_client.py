"""Unit tests for the PayNinja client against an httpx mock transport."""

import json
from decimal import Decimal

import httpx
import pytest
from services.payout_service import payninja_client
from services.payout_service.payninja_client import (
    BALANCE_PATH,
    INITIATE_PATH,
    PROVIDER_FAILED,
    PROVIDER_NOT_FOUND,
    PROVIDER_PENDING,
    PROVIDER_PROCESSING,
    PROVIDER_SUCCESS,
    STATUS_PATH,
    PayNinjaClient,
    ProviderRequestError,
    ProviderTransportError,
    build_transfer_payload,
    normalize_status,
)

UPI_SNAPSHOT = {
    "name": "Asha Patel",
    "phone_number": "9123456780",
    "transfer_type": "UPI",
    "vpa_address": "asha@okbank",
}

BANK_SNAPSHOT = {
    "name": "Ravi Kumar",
    "phone_number": "9876543210",
    "transfer_type": "NEFT",
    "account_number": "123456789012",
    "ifsc": "HDFC0001234",
    "bank_name": "HDFC Bank",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _client(handler) -> PayNinjaClient:
    return PayNinjaClient(
        api_key="key-123",
        secret_key="secret-456",
        base_url="https://payninja.test/",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


def _json_handler(status_code, body, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=body)

    return handler


# ---------------------------------------------------------------------------
# Payload / status mapping
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_upi_payload_uses_vpa_only():
    payload = build_transfer_payload(
        UPI_SNAPSHOT, Decimal("400"), "VNDabc123", "Vendor payout"
    )

    assert payload == {
        "ben_name": "Asha Patel",
        "ben_phone_number": "9123456780",
        "ben_vpa_address": "asha@okbank",
        "amount": "400.00",
        "merchant_reference_id": "VNDabc123",
        "transfer_type": "UPI",
        "narration": "Vendor payout",
    }


@pytest.mark.unit
def test_bank_payload_carries_account_fields():
    payload = build_transfer_payload(
        BANK_SNAPSHOT, Decimal("99.50"), "VNDdef456", "Settlement"
    )

    assert payload["ben_account_number"] == "123456789012"
    assert payload["ben_ifsc"] == "HDFC0001234"
    assert payload["ben_bank_name"] == "HDFC Bank"
    assert payload["amount"] == "99.50"
    assert "ben_vpa_address" not in payload


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("SUCCESS", PROVIDER_SUCCESS),
        ("completed", PROVIDER_SUCCESS),
        ("initiated", PROVIDER_PROCESSING),
        ("Rejected", PROVIDER_FAILED),
        ("not found", PROVIDER_NOT_FOUND),
        (None, PROVIDER_PENDING),
    ],
)
def test_normalize_status(raw, expected):
    assert normalize_status(raw) == expected


# ---------------------------------------------------------------------------
# submit_transfer
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_submit_transfer_sends_auth_headers_and_payload():
    seen = []
    client = _client(
        _json_handler(
            200,
            {
                "status": "success",
                "message": "Payout initiated",
                "data": {"transaction_id": "PN-77", "status": "PROCESSING"},
            },
            seen,
        )
    )

    result = await client.submit_transfer(
        UPI_SNAPSHOT, Decimal("400.00"), "VNDabc123", "Vendor payout"
    )

    request = seen[0]
    assert request.method == "POST"
    assert request.url == f"https://payninja.test{INITIATE_PATH}"
    assert request.headers["api-Key"] == "key-123"
    assert request.headers["secret-key"] == "secret-456"
    assert json.loads(request.content)["ben_vpa_address"] == "asha@okbank"
    assert result.accepted
    assert result.provider_transaction_id == "PN-77"
    assert result.status == PROVIDER_PROCESSING


@pytest.mark.asyncio
@pytest.mark.unit
async def test_submit_transfer_reported_failure_is_not_accepted():
    client = _client(
        _json_handler(
            200,
            {"status": "failed", "message": "Insufficient float", "data": {}},
        )
    )

    result = await client.submit_transfer(
        UPI_SNAPSHOT, Decimal("400.00"), "VNDabc123", "Vendor payout"
    )

    assert not result.accepted
    assert result.message == "Insufficient float"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_client_error_raises_request_error():
    client = _client(_json_handler(400, {"message": "Invalid IFSC"}))

    with pytest.raises(ProviderRequestError) as exc_info:
        await client.submit_transfer(
            BANK_SNAPSHOT, Decimal("10.00"), "VNDx", "Vendor payout"
        )

    assert exc_info.value.message == "Invalid IFSC"
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.unit
async def test_server_error_raises_transport_error():
    client = _client(_json_handler(503, {"message": "maintenance"}))

    with pytest.raises(ProviderTransportError) as exc_info:
        await client.submit_transfer(
            UPI_SNAPSHOT, Decimal("10.00"), "VNDx", "Vendor payout"
        )

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
@pytest.mark.unit
async def test_connection_error_raises_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)

    with pytest.raises(ProviderTransportError):
        await client.submit_transfer(
            UPI_SNAPSHOT, Decimal("10.00"), "VNDx", "Vendor payout"
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_non_json_response_raises_transport_error():
    client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(ProviderTransportError):
        await client.submit_transfer(
            UPI_SNAPSHOT, Decimal("10.00"), "VNDx", "Vendor payout"
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_non_object_body_raises_transport_error():
    client = _client(_json_handler(200, ["queued"]))

    with pytest.raises(ProviderTransportError):
        await client.submit_transfer(
            UPI_SNAPSHOT, Decimal("10.00"), "VNDx", "Vendor payout"
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_malformed_data_section_raises_transport_error():
    client = _client(_json_handler(200, {"status": "success", "data": "PROCESSING"}))

    with pytest.raises(ProviderTransportError):
        await client.query_status("VNDabc123")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_client_error_with_non_object_body_is_transport_error():
    client = _client(_json_handler(400, "bad request"))

    with pytest.raises(ProviderTransportError):
        await client.submit_transfer(
            UPI_SNAPSHOT, Decimal("10.00"), "VNDx", "Vendor payout"
        )


# ---------------------------------------------------------------------------
# query_status / balance
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_query_status_reads_utr():
    seen = []
    client = _client(
        _json_handler(
            200,
            {
                "status": "success",
                "data": {
                    "status": "COMPLETED",
                    "utr": "UTR000111",
                    "transaction_id": "PN-77",
                },
            },
            seen,
        )
    )

    result = await client.query_status("VNDabc123")

    assert seen[0].url.path == STATUS_PATH
    assert json.loads(seen[0].content) == {"merchant_reference_id": "VNDabc123"}
    assert result.status == PROVIDER_SUCCESS
    assert result.utr == "UTR000111"
    assert result.provider_transaction_id == "PN-77"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_query_status_failure_reason():
    client = _client(
        _json_handler(
            200,
            {"data": {"status": "FAILED", "failure_reason": "Account frozen"}},
        )
    )

    result = await client.query_status("VNDabc123")

    assert result.status == PROVIDER_FAILED
    assert result.error == "Account frozen"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_query_status_unknown_reference_is_not_found():
    client = _client(_json_handler(404, {"message": "No such transfer"}))

    result = await client.query_status("VNDmissing")

    assert result.status == PROVIDER_NOT_FOUND


@pytest.mark.asyncio
@pytest.mark.unit
async def test_account_balance():
    seen = []
    client = _client(
        _json_handler(200, {"data": {"balance": "250000.5", "currency": "INR"}}, seen)
    )

    result = await client.get_account_balance()

    assert seen[0].method == "GET"
    assert seen[0].url.path == BALANCE_PATH
    assert result.balance == Decimal("250000.50")
    assert result.currency == "INR"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unreadable_balance_is_transport_error():
    client = _client(_json_handler(200, {"data": {"balance": "n/a"}}))

    with pytest.raises(ProviderTransportError):
        await client.get_account_balance()


@pytest.mark.unit
def test_missing_credentials_are_refused(monkeypatch):
    monkeypatch.setattr(payninja_client.settings, "PAYNINJA_API_KEY", "")

    with pytest.raises(ValueError):
        PayNinjaClient(secret_key="secret")
