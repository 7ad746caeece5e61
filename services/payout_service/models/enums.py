"""Enums for the Payout Service models."""

import enum


class TransferType(str, enum.Enum):
    UPI = "UPI"
    IMPS = "IMPS"
    NEFT = "NEFT"

    @property
    def uses_bank_account(self) -> bool:
        return self != TransferType.UPI


class PayoutStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"
    REVERSED = "reversed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {PayoutStatus.SUCCESS, PayoutStatus.FAILED, PayoutStatus.REVERSED}
)
OPEN_STATUSES = frozenset({PayoutStatus.PENDING, PayoutStatus.PROCESSING})

# current status -> statuses it may move to
ALLOWED_TRANSITIONS = {
    PayoutStatus.PENDING: frozenset(
        {
            PayoutStatus.PROCESSING,
            PayoutStatus.SUCCESS,
            PayoutStatus.FAILED,
            PayoutStatus.REVERSED,
        }
    ),
    PayoutStatus.PROCESSING: frozenset(
        {PayoutStatus.SUCCESS, PayoutStatus.FAILED, PayoutStatus.REVERSED}
    ),
    PayoutStatus.SUCCESS: frozenset(),
    PayoutStatus.FAILED: frozenset(),
    PayoutStatus.REVERSED: frozenset(),
}
