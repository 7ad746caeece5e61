"""create_vendor_wallet_and_payout_tables

Revision ID: 3f7a9c2e1b40
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f7a9c2e1b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


vendor_status_enum = postgresql.ENUM(
    'pending', 'active', 'suspended', name='vendor_status_enum', create_type=False
)
ledger_entry_type_enum = postgresql.ENUM(
    'topup_credit', 'payout_debit', 'payout_reversal',
    name='ledger_entry_type_enum', create_type=False,
)
topup_status_enum = postgresql.ENUM(
    'pending', 'approved', 'rejected', name='topup_status_enum', create_type=False
)
transfer_type_enum = postgresql.ENUM(
    'UPI', 'IMPS', 'NEFT', name='transfer_type_enum', create_type=False
)
payout_status_enum = postgresql.ENUM(
    'pending', 'processing', 'success', 'failed', 'reversed',
    name='payout_status_enum', create_type=False,
)

ALL_ENUMS = (
    vendor_status_enum,
    ledger_entry_type_enum,
    topup_status_enum,
    transfer_type_enum,
    payout_status_enum,
)


def upgrade() -> None:
    """Upgrade schema - vendor wallets, ledger, top-ups, beneficiaries, payouts."""
    bind = op.get_bind()
    for enum_type in ALL_ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'vendors',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('business_name', sa.String(), nullable=False),
        sa.Column('status', vendor_status_enum, nullable=False),
        sa.Column('status_changed_by', sa.String(), nullable=True),
        sa.Column('status_changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_vendors_email', 'vendors', ['email'], unique=True)

    op.create_table(
        'wallets',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('vendor_id', sa.Uuid(), nullable=False),
        sa.Column('balance', sa.Numeric(14, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('lifetime_credited', sa.Numeric(14, 2), nullable=False),
        sa.Column('lifetime_debited', sa.Numeric(14, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('balance >= 0', name='ck_wallet_balance_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_wallets_vendor_id', 'wallets', ['vendor_id'], unique=True)

    op.create_table(
        'ledger_entries',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('wallet_id', sa.Uuid(), nullable=False),
        sa.Column('entry_type', ledger_entry_type_enum, nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('balance_after', sa.Numeric(14, 2), nullable=False),
        sa.Column('source_type', sa.String(), nullable=False),
        sa.Column('source_ref', sa.String(), nullable=False),
        sa.Column('reversal_of_entry_id', sa.Uuid(), nullable=True),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount <> 0', name='ck_ledger_entry_amount_non_zero'),
        sa.CheckConstraint('balance_after >= 0', name='ck_ledger_entry_balance_after'),
        sa.ForeignKeyConstraint(['wallet_id'], ['wallets.id']),
        sa.ForeignKeyConstraint(['reversal_of_entry_id'], ['ledger_entries.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reversal_of_entry_id'),
    )
    op.create_index('ix_ledger_entries_wallet_id', 'ledger_entries', ['wallet_id'])
    op.create_index('ix_ledger_entries_source_ref', 'ledger_entries', ['source_ref'])
    op.create_index(
        'ix_ledger_entries_wallet_created', 'ledger_entries', ['wallet_id', 'created_at']
    )

    op.create_table(
        'topup_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('reference', sa.String(), nullable=False),
        sa.Column('vendor_id', sa.Uuid(), nullable=False),
        sa.Column('wallet_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('status', topup_status_enum, nullable=False),
        sa.Column('admin_id', sa.String(), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('ledger_entry_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_topup_amount_positive'),
        sa.ForeignKeyConstraint(['wallet_id'], ['wallets.id']),
        sa.ForeignKeyConstraint(['ledger_entry_id'], ['ledger_entries.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_topup_requests_reference', 'topup_requests', ['reference'], unique=True)
    op.create_index('ix_topup_requests_vendor_id', 'topup_requests', ['vendor_id'])
    op.create_index('ix_topup_requests_wallet_id', 'topup_requests', ['wallet_id'])

    op.create_table(
        'beneficiaries',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('vendor_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('phone_number', sa.String(length=10), nullable=False),
        sa.Column('transfer_type', transfer_type_enum, nullable=False),
        sa.Column('vpa_address', sa.String(length=255), nullable=True),
        sa.Column('account_number', sa.String(length=34), nullable=True),
        sa.Column('ifsc', sa.String(length=11), nullable=True),
        sa.Column('bank_name', sa.String(length=200), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_beneficiaries_vendor_id', 'beneficiaries', ['vendor_id'])
    op.create_index(
        'ix_beneficiaries_vendor_active', 'beneficiaries', ['vendor_id', 'is_active']
    )

    op.create_table(
        'payout_transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('vendor_id', sa.Uuid(), nullable=False),
        sa.Column('wallet_id', sa.Uuid(), nullable=False),
        sa.Column('beneficiary_id', sa.Uuid(), nullable=True),
        sa.Column(
            'beneficiary_snapshot', postgresql.JSONB(astext_type=sa.Text()), nullable=False
        ),
        sa.Column('merchant_reference_id', sa.String(length=64), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('transfer_type', transfer_type_enum, nullable=False),
        sa.Column('status', payout_status_enum, nullable=False),
        sa.Column('provider_transaction_id', sa.String(), nullable=True),
        sa.Column('utr', sa.String(), nullable=True),
        sa.Column('narration', sa.String(length=255), nullable=True),
        sa.Column('debit_entry_id', sa.Uuid(), nullable=False),
        sa.Column('reversal_entry_id', sa.Uuid(), nullable=True),
        sa.Column('provider_status', sa.String(), nullable=True),
        sa.Column('last_provider_error', sa.Text(), nullable=True),
        sa.Column('reconcile_attempts', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_checked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'needs_manual_review', sa.Boolean(), server_default='false', nullable=False
        ),
        sa.Column('review_reason', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_payout_amount_positive'),
        sa.ForeignKeyConstraint(['wallet_id'], ['wallets.id']),
        sa.ForeignKeyConstraint(['beneficiary_id'], ['beneficiaries.id']),
        sa.ForeignKeyConstraint(['debit_entry_id'], ['ledger_entries.id']),
        sa.ForeignKeyConstraint(['reversal_entry_id'], ['ledger_entries.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_payout_transactions_merchant_reference_id',
        'payout_transactions',
        ['merchant_reference_id'],
        unique=True,
    )
    op.create_index('ix_payout_transactions_vendor_id', 'payout_transactions', ['vendor_id'])
    op.create_index('ix_payout_transactions_wallet_id', 'payout_transactions', ['wallet_id'])
    op.create_index(
        'ix_payout_transactions_beneficiary_id', 'payout_transactions', ['beneficiary_id']
    )
    op.create_index(
        'ix_payout_transactions_status_created',
        'payout_transactions',
        ['status', 'created_at'],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('payout_transactions')
    op.drop_table('beneficiaries')
    op.drop_table('topup_requests')
    op.drop_table('ledger_entries')
    op.drop_table('wallets')
    op.drop_table('vendors')

    bind = op.get_bind()
    for enum_type in reversed(ALL_ENUMS):
        enum_type.drop(bind, checkfirst=True)
