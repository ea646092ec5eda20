from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from ..core.amounts import parse_amount
from ..core.config import Settings, get_settings
from ..core.errors import (
    AccountNotFoundError,
    DuplicateAccountError,
    InsufficientFundsError,
    InvalidIdentifierError,
    LedgerError,
    ReceiverNotFoundError,
    SelfTransferError,
    SenderNotFoundError,
    TransactionAbortedError,
)
from ..core.policy import Role, charge_sender, coerce_role
from ..models import (
    AccountModel,
    AccountResponse,
    HistoryItemResponse,
    HistoryResponse,
    TransactionRecordModel,
    TransferFailure,
    TransferResult,
    TransferSuccess,
)
from .store import AccountStore


logger = logging.getLogger(__name__)


class LedgerService:
    def __init__(
        self,
        session: Session,
        store: Optional[AccountStore] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.session = session
        self.settings = settings or get_settings()
        self.store = store or AccountStore(
            session, lock_timeout=self.settings.lock_timeout_seconds
        )

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    def _account_to_response(self, account: AccountModel) -> AccountResponse:
        return AccountResponse(
            identifier=account.identifier,
            role=account.role,
            created_at=account.created_at,
            balance=account.balance,
        )

    def _record_to_history_item(
        self, identifier: str, record: TransactionRecordModel
    ) -> HistoryItemResponse:
        sent = record.sender == identifier
        return HistoryItemResponse(
            id=record.id,
            created_at=record.created_at,
            sender=record.sender,
            receiver=record.receiver,
            amount=record.amount,
            direction="sent" if sent else "received",
            counterparty=record.receiver if sent else record.sender,
        )

    def _get_account(self, identifier: str) -> AccountModel:
        account = self.store.get_account(identifier)
        if account is None:
            raise AccountNotFoundError(f"Account {identifier} not found")
        return account

    def _deny(self, exc: LedgerError, **context: Any) -> TransferFailure:
        level = logging.WARNING if isinstance(exc, TransactionAbortedError) else logging.INFO
        event = "transfer.aborted" if isinstance(exc, TransactionAbortedError) else "transfer.rejected"
        logger.log(level, event, extra={"kind": exc.kind.value, "reason": str(exc), **context})
        return TransferFailure(kind=exc.kind, message=exc.default_message)

    def _check_parties(self, sender_id: str, receiver_id: str) -> None:
        if not receiver_id or receiver_id == sender_id:
            raise SelfTransferError()

    def _execute_transfer(
        self,
        sender_id: str,
        receiver_id: str,
        amount: int,
        sender_role: Role,
    ) -> TransferSuccess:
        charge = charge_sender(sender_role, amount)

        # Fixed global order so opposite-direction transfers cannot deadlock.
        locked = {
            identifier: self.store.get_for_update(identifier)
            for identifier in sorted((sender_id, receiver_id))
        }
        receiver = locked[receiver_id]
        if receiver is None:
            raise ReceiverNotFoundError()
        sender = locked[sender_id]
        if sender is None:
            raise SenderNotFoundError()

        if charge.require_funds and sender.balance < amount:
            raise InsufficientFundsError(
                f"Balance {sender.balance} is below the requested {amount}"
            )

        sender_balance = sender.balance - charge.debit
        receiver_balance = receiver.balance + amount
        if not charge.skipped:
            self.store.update_balance(sender_id, sender_balance)
        self.store.update_balance(receiver_id, receiver_balance)

        record = self.store.append_transaction(sender_id, receiver_id, amount)
        success = TransferSuccess(
            record_id=record.id,
            sender=sender_id,
            receiver=receiver_id,
            amount=amount,
            sender_balance=sender_balance,
            receiver_balance=receiver_balance,
            sender_charged=not charge.skipped,
            created_at=record.created_at,
        )
        self.store.commit()
        return success

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def transfer(
        self,
        sender_id: str,
        receiver_id: Optional[str],
        raw_amount: Any,
        sender_role: Role | str | None,
    ) -> TransferResult:
        """Move ``raw_amount`` from sender to receiver as one atomic unit.

        Never raises for a denied transfer: every failure comes back as a
        ``TransferFailure`` and leaves balances and history untouched.
        """
        sender_id = (sender_id or "").strip()
        receiver_id = (receiver_id or "").strip()
        context = {"sender": sender_id, "receiver": receiver_id}

        try:
            amount = parse_amount(raw_amount, self.settings.max_transfer_amount)
            self._check_parties(sender_id, receiver_id)
        except LedgerError as exc:
            return self._deny(exc, **context)

        try:
            result = self._execute_transfer(
                sender_id, receiver_id, amount, coerce_role(sender_role)
            )
        except LedgerError as exc:
            self.store.rollback()
            return self._deny(exc, amount=amount, **context)
        except SQLAlchemyError as exc:
            self.store.rollback()
            return self._deny(TransactionAbortedError(str(exc)), amount=amount, **context)
        except Exception:
            self.store.rollback()
            raise
        finally:
            self.store.release()

        logger.info(
            "transfer.committed",
            extra={
                "record_id": result.record_id,
                "amount": amount,
                "sender_charged": result.sender_charged,
                **context,
            },
        )
        return result

    def open_account(
        self, identifier: str, role: Role = Role.STANDARD
    ) -> AccountResponse:
        identifier = (identifier or "").strip()
        if not identifier:
            raise InvalidIdentifierError("Account identifier is required")
        if self.store.get_account(identifier) is not None:
            raise DuplicateAccountError("That username is taken.")

        try:
            account = self.store.add_account(
                identifier, coerce_role(role), self.settings.starting_balance
            )
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateAccountError("That username is taken.") from exc

        logger.info(
            "account.created",
            extra={"identifier": identifier, "role": account.role.value},
        )
        return self._account_to_response(account)

    def get_account(self, identifier: str) -> AccountResponse:
        return self._account_to_response(self._get_account(identifier))

    def role_of(self, identifier: str) -> Role:
        account = self.store.get_account(identifier)
        return account.role if account is not None else Role.STANDARD

    def list_accounts(self) -> list[str]:
        return [account.identifier for account in self.store.list_accounts()]

    def list_counterparties(self, identifier: str) -> list[str]:
        self._get_account(identifier)
        return [name for name in self.list_accounts() if name != identifier]

    def total_supply(self) -> int:
        return self.store.total_balance()

    def get_history(
        self,
        identifier: str,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> HistoryResponse:
        self._get_account(identifier)
        if limit < 1:
            raise ValueError("limit must be at least 1")

        before_id = None
        if cursor:
            try:
                before_id = int(cursor)
            except ValueError as exc:
                raise ValueError("Invalid cursor") from exc

        records = self.store.list_transactions(identifier, limit + 1, before_id)
        page = records[:limit]
        next_cursor = None
        if len(records) > limit:
            next_cursor = str(page[-1].id)

        items = [self._record_to_history_item(identifier, record) for record in page]
        return HistoryResponse(items=items, next_cursor=next_cursor)
