from fastapi import Depends, Header, HTTPException, status
from sqlmodel import Session

from ..services import AccountStore, LedgerService
from .config import get_settings
from .db import get_session

def get_ledger_service(session: Session = Depends(get_session)) -> LedgerService:
    settings = get_settings()
    store = AccountStore(session, lock_timeout=settings.lock_timeout_seconds)
    return LedgerService(session, store, settings)

def get_principal(
    username: str | None = Header(default=None, convert_underscores=False, alias="X-Username"),
) -> str:
    """Identity of the caller, as established by the upstream auth layer."""
    if not username or not username.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return username.strip()
