"""Unit tests for vendor registration and admin status changes."""

import uuid
from decimal import Decimal

import pytest
from libs.common.errors import InvalidRequest, NotFound, Unauthorized
from services.vendor_service.models import VendorAction, VendorStatus
from services.vendor_service.services import vendor_ops
from services.wallet_service.services import ledger_ops
from tests.factories import make_active_vendor, make_admin_user, make_vendor_user


# ---------------------------------------------------------------------------
# register_vendor
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_register_creates_pending_vendor_with_wallet(db_session):
    vendor = await vendor_ops.register_vendor(
        db_session, email="shop@test.com", business_name="Chai Corner"
    )

    assert vendor.status == VendorStatus.PENDING
    wallet = await ledger_ops.get_wallet_by_vendor(db_session, vendor.id)
    assert wallet.balance == Decimal("0.00")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_register_duplicate_email_is_refused(db_session):
    await vendor_ops.register_vendor(
        db_session, email="dup@test.com", business_name="First"
    )

    with pytest.raises(InvalidRequest):
        await vendor_ops.register_vendor(
            db_session, email="dup@test.com", business_name="Second"
        )


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_approve_suspend_activate_cycle(db_session):
    admin = make_admin_user()
    vendor = await vendor_ops.register_vendor(
        db_session, email="cycle@test.com", business_name="Cycle Mart"
    )

    for action, expected in (
        (VendorAction.APPROVE, VendorStatus.ACTIVE),
        (VendorAction.SUSPEND, VendorStatus.SUSPENDED),
        (VendorAction.ACTIVATE, VendorStatus.ACTIVE),
    ):
        vendor = await vendor_ops.update_vendor_status(
            db_session, actor=admin, vendor_id=vendor.id, action=action
        )
        assert vendor.status == expected

    assert vendor.status_changed_by == admin.user_id
    assert vendor.status_changed_at is not None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_illegal_transition_is_refused(db_session):
    vendor, _wallet = await make_active_vendor(db_session)

    with pytest.raises(InvalidRequest):
        await vendor_ops.update_vendor_status(
            db_session,
            actor=make_admin_user(),
            vendor_id=vendor.id,
            action=VendorAction.APPROVE,
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_only_admins_change_status(db_session):
    vendor, _wallet = await make_active_vendor(db_session)

    with pytest.raises(Unauthorized):
        await vendor_ops.update_vendor_status(
            db_session,
            actor=make_vendor_user(vendor.id),
            vendor_id=vendor.id,
            action=VendorAction.SUSPEND,
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_require_active_vendor(db_session):
    active, _ = await make_active_vendor(db_session)
    suspended, _ = await make_active_vendor(db_session, status=VendorStatus.SUSPENDED)

    assert (await vendor_ops.require_active_vendor(db_session, active.id)).id == active.id
    with pytest.raises(Unauthorized):
        await vendor_ops.require_active_vendor(db_session, suspended.id)
    with pytest.raises(NotFound):
        await vendor_ops.require_active_vendor(db_session, uuid.uuid4())


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_and_stats(db_session):
    await make_active_vendor(db_session)
    await make_active_vendor(db_session)
    await make_active_vendor(db_session, status=VendorStatus.PENDING)

    pending, total = await vendor_ops.list_vendors(
        db_session, status=VendorStatus.PENDING
    )
    stats = await vendor_ops.vendor_stats(db_session)

    assert total == 1
    assert pending[0].status == VendorStatus.PENDING
    assert stats == {"pending": 1, "active": 2, "suspended": 0, "total": 3}
