"""Unit tests for beneficiary validation and the beneficiary registry."""

import uuid

import pytest
from libs.common.errors import (
    BeneficiaryInUse,
    IncompleteBeneficiary,
    ModeMismatch,
    NotFound,
    Unauthorized,
)
from services.payout_service.models import Beneficiary, TransferType
from services.payout_service.services import beneficiary_service
from services.payout_service.services.beneficiary_service import (
    supports_transfer_type,
    validate_destination,
)
from services.payout_service.services.payout_engine import initiate_payout
from tests.factories import (
    IMPS_DETAILS,
    UPI_DETAILS,
    make_active_vendor,
    make_admin_user,
    make_beneficiary,
    make_funded_vendor,
    make_vendor_user,
)


# ---------------------------------------------------------------------------
# validate_destination
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_upi_destination_snapshot_has_only_vpa():
    destination = validate_destination(**UPI_DETAILS)

    assert destination.transfer_type == TransferType.UPI
    assert destination.snapshot() == {
        "name": "Asha Patel",
        "phone_number": "9123456780",
        "transfer_type": "UPI",
        "vpa_address": "asha@okbank",
    }


@pytest.mark.unit
def test_bank_destination_uppercases_ifsc():
    destination = validate_destination(**IMPS_DETAILS)

    assert destination.ifsc == "HDFC0001234"
    assert "vpa_address" not in destination.snapshot()


@pytest.mark.unit
def test_upi_without_vpa_is_incomplete():
    details = {**UPI_DETAILS, "vpa_address": None}

    with pytest.raises(IncompleteBeneficiary) as exc_info:
        validate_destination(**details)

    assert exc_info.value.context["field"] == "vpa_address"


@pytest.mark.unit
@pytest.mark.parametrize("missing", ["account_number", "ifsc", "bank_name"])
def test_bank_transfer_missing_field_is_incomplete(missing):
    details = {**IMPS_DETAILS, missing: "  "}

    with pytest.raises(IncompleteBeneficiary):
        validate_destination(**details)


@pytest.mark.unit
def test_upi_with_bank_fields_is_mode_mismatch():
    details = {**UPI_DETAILS, "account_number": "1234567890"}

    with pytest.raises(ModeMismatch):
        validate_destination(**details)


@pytest.mark.unit
def test_neft_with_vpa_is_mode_mismatch():
    details = {**IMPS_DETAILS, "transfer_type": "NEFT", "vpa_address": "x@bank"}

    with pytest.raises(ModeMismatch):
        validate_destination(**details)


@pytest.mark.unit
@pytest.mark.parametrize("phone", ["98765", "98765432101", "98765abcde", ""])
def test_phone_must_be_ten_digits(phone):
    with pytest.raises(IncompleteBeneficiary):
        validate_destination(**{**UPI_DETAILS, "phone_number": phone})


@pytest.mark.unit
def test_unknown_transfer_type_is_mode_mismatch():
    with pytest.raises(ModeMismatch):
        validate_destination(**{**UPI_DETAILS, "transfer_type": "RTGS"})


@pytest.mark.unit
def test_transfer_type_is_case_insensitive():
    destination = validate_destination(**{**UPI_DETAILS, "transfer_type": "upi"})

    assert destination.transfer_type == TransferType.UPI


@pytest.mark.unit
def test_bank_account_supports_imps_and_neft_only():
    destination = validate_destination(**IMPS_DETAILS)

    assert supports_transfer_type(destination, TransferType.NEFT)
    assert not supports_transfer_type(destination, TransferType.UPI)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_and_list_beneficiaries(db_session):
    vendor, _wallet = await make_active_vendor(db_session)
    actor = make_vendor_user(vendor.id)

    upi = await beneficiary_service.create_beneficiary(
        db_session, actor=actor, vendor_id=vendor.id, **UPI_DETAILS
    )
    await beneficiary_service.create_beneficiary(
        db_session, actor=actor, vendor_id=vendor.id, **IMPS_DETAILS
    )

    assert upi.is_active
    items, total = await beneficiary_service.list_beneficiaries(
        db_session, actor=actor, vendor_id=vendor.id, transfer_type=TransferType.UPI
    )
    assert total == 1
    assert items[0].id == upi.id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_other_vendor_cannot_read_beneficiary(db_session):
    vendor, _wallet = await make_active_vendor(db_session)
    beneficiary = await make_beneficiary(db_session, vendor.id)

    with pytest.raises(Unauthorized):
        await beneficiary_service.get_beneficiary(
            db_session,
            actor=make_vendor_user(uuid.uuid4()),
            beneficiary_id=beneficiary.id,
        )

    found = await beneficiary_service.get_beneficiary(
        db_session, actor=make_admin_user(), beneficiary_id=beneficiary.id
    )
    assert found.id == beneficiary.id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_unknown_beneficiary(db_session):
    with pytest.raises(NotFound):
        await beneficiary_service.get_beneficiary(
            db_session, actor=make_admin_user(), beneficiary_id=uuid.uuid4()
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_switching_to_upi_clears_bank_fields(db_session):
    vendor, _wallet = await make_active_vendor(db_session)
    beneficiary = await make_beneficiary(db_session, vendor.id)

    updated = await beneficiary_service.update_beneficiary(
        db_session,
        actor=make_vendor_user(vendor.id),
        beneficiary_id=beneficiary.id,
        changes={"transfer_type": "UPI", "vpa_address": "ravi@upi"},
    )

    assert updated.transfer_type == TransferType.UPI
    assert updated.vpa_address == "ravi@upi"
    assert updated.account_number is None
    assert updated.ifsc is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_is_revalidated_as_a_whole(db_session):
    vendor, _wallet = await make_active_vendor(db_session)
    beneficiary = await make_beneficiary(db_session, vendor.id)

    with pytest.raises(IncompleteBeneficiary):
        await beneficiary_service.update_beneficiary(
            db_session,
            actor=make_vendor_user(vendor.id),
            beneficiary_id=beneficiary.id,
            changes={"transfer_type": "UPI"},
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_deactivate_is_idempotent(db_session):
    vendor, _wallet = await make_active_vendor(db_session)
    beneficiary = await make_beneficiary(db_session, vendor.id)
    actor = make_vendor_user(vendor.id)

    for _ in range(2):
        result = await beneficiary_service.set_beneficiary_active(
            db_session, actor=actor, beneficiary_id=beneficiary.id, active=False
        )
        assert result.is_active is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_unused_beneficiary(db_session):
    vendor, _wallet = await make_active_vendor(db_session)
    beneficiary = await make_beneficiary(db_session, vendor.id)
    beneficiary_id = beneficiary.id

    await beneficiary_service.delete_beneficiary(
        db_session, actor=make_vendor_user(vendor.id), beneficiary_id=beneficiary_id
    )

    assert await db_session.get(Beneficiary, beneficiary_id) is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_beneficiary_used_by_payout_is_refused(
    db_session, fake_provider
):
    vendor, _wallet = await make_funded_vendor(db_session, balance="500.00")
    actor = make_vendor_user(vendor.id)
    beneficiary = await make_beneficiary(db_session, vendor.id)
    await initiate_payout(
        db_session,
        actor=actor,
        vendor_id=vendor.id,
        amount="100.00",
        provider=fake_provider,
        beneficiary_id=beneficiary.id,
    )

    with pytest.raises(BeneficiaryInUse) as exc_info:
        await beneficiary_service.delete_beneficiary(
            db_session, actor=actor, beneficiary_id=beneficiary.id
        )

    assert exc_info.value.context["payout_count"] == 1
