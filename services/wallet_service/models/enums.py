"""Enums for the Wallet Service models."""

import enum


class LedgerEntryType(str, enum.Enum):
    TOPUP_CREDIT = "topup_credit"
    PAYOUT_DEBIT = "payout_debit"
    PAYOUT_REVERSAL = "payout_reversal"


class TopupStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TopupDecision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


# What a ledger entry's ``source_ref`` points at
SOURCE_TOPUP = "topup_request"
SOURCE_PAYOUT = "payout_transaction"
SOURCE_LEDGER_ENTRY = "ledger_entry"
