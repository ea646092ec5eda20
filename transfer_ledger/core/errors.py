from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    INVALID_AMOUNT = "InvalidAmount"
    SELF_TRANSFER = "SelfTransfer"
    SENDER_NOT_FOUND = "SenderNotFound"
    RECEIVER_NOT_FOUND = "ReceiverNotFound"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    TRANSACTION_ABORTED = "TransactionAborted"


class LedgerError(Exception):
    """Base class for every way a transfer can be denied."""

    kind: FailureKind
    default_message: str = "Transfer denied."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InvalidAmountError(LedgerError):
    """Raised when the amount is not a positive integer within limits."""

    kind = FailureKind.INVALID_AMOUNT
    default_message = "Invalid amount."


class SelfTransferError(LedgerError):
    """Raised when the receiver is missing or names the sender."""

    kind = FailureKind.SELF_TRANSFER
    default_message = "You can't send money to yourself."


class SenderNotFoundError(LedgerError):
    kind = FailureKind.SENDER_NOT_FOUND
    default_message = "Your account does not exist."


class ReceiverNotFoundError(LedgerError):
    kind = FailureKind.RECEIVER_NOT_FOUND
    default_message = "That user does not exist."


class InsufficientFundsError(LedgerError):
    """Raised when a standard sender's balance is below the amount."""

    kind = FailureKind.INSUFFICIENT_FUNDS
    default_message = "Not enough money!"


class TransactionAbortedError(LedgerError):
    """Raised when the unit of work could not be locked or committed."""

    kind = FailureKind.TRANSACTION_ABORTED
    default_message = "The transfer could not be completed. Please retry."


class AccountNotFoundError(Exception):
    """Raised when a read targets an identifier missing from the store."""


class DuplicateAccountError(Exception):
    """Raised when signing up with an identifier that is already taken."""


class InvalidIdentifierError(ValueError):
    """Raised when an account identifier is blank."""
