from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager

import pytest
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, select

from ..core.config import Settings
from ..core.db import create_engine_for_url
from ..core.policy import Role
from ..models import TransactionRecordModel
from ..services import AccountLockRegistry, AccountStore, LedgerService


@pytest.fixture
def engine(tmp_path) -> Iterator[Engine]:
    # File-backed so every thread gets its own connection to the same data.
    engine = create_engine_for_url(f"sqlite:///{tmp_path / 'ledger.db'}", busy_timeout=10.0)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def locks() -> AccountLockRegistry:
    return AccountLockRegistry()


@pytest.fixture
def settings() -> Settings:
    return Settings(starting_balance=1000, max_transfer_amount=10**12, lock_timeout_seconds=10.0)


@pytest.fixture
def ledger(
    engine: Engine, locks: AccountLockRegistry, settings: Settings
) -> Callable[..., AbstractContextManager[LedgerService]]:
    """Factory yielding a service bound to a fresh session, one per caller."""

    @contextmanager
    def _ledger(**overrides) -> Iterator[LedgerService]:
        service_settings = settings.model_copy(update=overrides)
        with Session(engine) as session:
            store = AccountStore(
                session,
                locks=locks,
                lock_timeout=service_settings.lock_timeout_seconds,
            )
            yield LedgerService(session, store, service_settings)

    return _ledger


@pytest.fixture
def seed(engine: Engine) -> Callable[..., None]:
    def _seed(role: Role = Role.STANDARD, **balances: int) -> None:
        with Session(engine) as session:
            store = AccountStore(session)
            for identifier, balance in balances.items():
                store.add_account(identifier, role, balance)
            session.commit()

    return _seed


@pytest.fixture
def snapshot(engine: Engine) -> Callable[[], tuple[dict[str, int], list[TransactionRecordModel]]]:
    """Committed balances and transaction records as seen by a new reader."""

    def _snapshot() -> tuple[dict[str, int], list[TransactionRecordModel]]:
        with Session(engine) as session:
            balances = {a.identifier: a.balance for a in AccountStore(session).list_accounts()}
            records = list(
                session.exec(select(TransactionRecordModel).order_by(TransactionRecordModel.id))
            )
            return balances, records

    return _snapshot
