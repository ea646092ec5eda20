import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from .api.exceptions import register_exception_handlers
from .api.routes import router as accounts_router, transfer_router
from .core.config import Settings, get_settings
from .core.db import get_session, init_db

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db()
        logger.info(
            "ledger.started",
            extra={
                "starting_balance": settings.starting_balance,
                "max_transfer_amount": settings.max_transfer_amount,
            },
        )
        yield

    ledger_app = FastAPI(title=settings.app_name, lifespan=lifespan)
    ledger_app.include_router(accounts_router)
    ledger_app.include_router(transfer_router)
    register_exception_handlers(ledger_app)

    @ledger_app.get("/health")
    def read_health(session: Session = Depends(get_session)) -> dict[str, str]:
        try:
            session.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("health.database_unreachable", exc_info=True)
            return {"status": "degraded", "database": "unreachable"}
        return {"status": "ok", "database": "ok"}

    return ledger_app


app = create_app()
