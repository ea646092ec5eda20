from .ledger import LedgerService
from .store import AccountLockRegistry, AccountStore, account_locks

__all__ = ["AccountLockRegistry", "AccountStore", "LedgerService", "account_locks"]
