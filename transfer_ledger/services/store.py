from __future__ import annotations

import logging
import threading
from typing import Optional

from sqlalchemy import func, or_, text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.errors import TransactionAbortedError
from ..core.policy import Role
from ..models import AccountModel, TransactionRecordModel


logger = logging.getLogger(__name__)

# Balances are stored as signed 64-bit integers.
MAX_BALANCE = 2**63 - 1


class AccountLockRegistry:
    """Process-wide exclusive locks keyed by account identifier.

    Entries are reference counted so identifiers nobody is waiting on do not
    accumulate.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._refs: dict[str, int] = {}

    def acquire(self, identifier: str, timeout: float) -> bool:
        with self._guard:
            lock = self._locks.setdefault(identifier, threading.Lock())
            self._refs[identifier] = self._refs.get(identifier, 0) + 1
        acquired = lock.acquire(timeout=timeout)
        if not acquired:
            self._forget(identifier)
        return acquired

    def release(self, identifier: str) -> None:
        with self._guard:
            lock = self._locks[identifier]
        lock.release()
        self._forget(identifier)

    def _forget(self, identifier: str) -> None:
        with self._guard:
            self._refs[identifier] -= 1
            if self._refs[identifier] == 0:
                del self._refs[identifier]
                del self._locks[identifier]

    def held(self) -> set[str]:
        with self._guard:
            return {key for key, lock in self._locks.items() if lock.locked()}


account_locks = AccountLockRegistry()


class AccountStore:
    """Data access around one SQLModel session.

    ``get_for_update``/``update_balance``/``append_transaction`` stage a single
    unit of work that ``commit`` publishes atomically or ``rollback`` drops.
    ``release`` must always follow, whatever the outcome.
    """

    def __init__(
        self,
        session: Session,
        locks: Optional[AccountLockRegistry] = None,
        lock_timeout: float = 5.0,
    ) -> None:
        self.session = session
        self.locks = locks or account_locks
        self.lock_timeout = lock_timeout
        self._held: list[str] = []
        self._locked_rows: dict[str, Optional[AccountModel]] = {}

    # Exclusive access ---------------------------------------------------
    def get_for_update(self, identifier: str) -> Optional[AccountModel]:
        if identifier not in self._held:
            if not self.locks.acquire(identifier, self.lock_timeout):
                logger.warning(
                    "account.lock_timeout",
                    extra={"identifier": identifier, "timeout": self.lock_timeout},
                )
                raise TransactionAbortedError(
                    f"Timed out waiting for exclusive access to {identifier!r}"
                )
            self._held.append(identifier)

        try:
            self._apply_lock_timeout()
            stmt = (
                select(AccountModel)
                .where(AccountModel.identifier == identifier)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            account = self.session.exec(stmt).first()
        except SQLAlchemyError as exc:
            raise TransactionAbortedError(
                f"Could not lock account {identifier!r}"
            ) from exc

        self._locked_rows[identifier] = account
        return account

    def _apply_lock_timeout(self) -> None:
        # Row locks only exist on server databases; SQLite relies on its busy timeout.
        if self.session.get_bind().dialect.name != "postgresql" or self._locked_rows:
            return
        timeout_ms = int(self.lock_timeout * 1000)
        self.session.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))

    def release(self) -> None:
        while self._held:
            self.locks.release(self._held.pop())
        self._locked_rows.clear()

    # Staged writes ------------------------------------------------------
    def update_balance(self, identifier: str, new_balance: int) -> None:
        account = self._locked_rows.get(identifier)
        if account is None:
            raise RuntimeError(f"Account {identifier!r} was not locked for update")
        if new_balance < 0:
            raise ValueError("Balance cannot become negative")
        if new_balance > MAX_BALANCE:
            raise TransactionAbortedError(f"Balance of {identifier!r} would overflow")
        account.balance = new_balance
        self.session.add(account)

    def append_transaction(
        self, sender: str, receiver: str, amount: int
    ) -> TransactionRecordModel:
        record = TransactionRecordModel(sender=sender, receiver=receiver, amount=amount)
        self.session.add(record)
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            raise TransactionAbortedError("Could not record the transaction") from exc
        return record

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            logger.warning("store.commit_failed", extra={"error": str(exc)})
            self.session.rollback()
            raise TransactionAbortedError("Commit failed") from exc

    def rollback(self) -> None:
        self.session.rollback()

    # Snapshot reads -----------------------------------------------------
    def add_account(self, identifier: str, role: Role, balance: int) -> AccountModel:
        account = AccountModel(identifier=identifier, role=role, balance=balance)
        self.session.add(account)
        self.session.flush()
        self.session.refresh(account)
        return account

    def get_account(self, identifier: str) -> Optional[AccountModel]:
        return self.session.get(AccountModel, identifier, populate_existing=True)

    def list_accounts(self) -> list[AccountModel]:
        stmt = select(AccountModel).order_by(AccountModel.identifier)
        return list(self.session.exec(stmt))

    def list_transactions(
        self,
        identifier: str,
        limit: int,
        before_id: Optional[int] = None,
    ) -> list[TransactionRecordModel]:
        stmt = select(TransactionRecordModel).where(
            or_(
                TransactionRecordModel.sender == identifier,
                TransactionRecordModel.receiver == identifier,
            )
        )
        if before_id is not None:
            stmt = stmt.where(TransactionRecordModel.id < before_id)
        stmt = stmt.order_by(TransactionRecordModel.id.desc()).limit(limit)
        return list(self.session.exec(stmt))

    def total_balance(self) -> int:
        stmt = select(func.coalesce(func.sum(AccountModel.balance), 0))
        return int(self.session.exec(stmt).one())
