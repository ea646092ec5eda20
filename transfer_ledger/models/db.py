from __future__ import annotations
from datetime import datetime, UTC
from typing import Optional
from sqlalchemy import BigInteger, Column
from sqlmodel import Field, SQLModel

from ..core.policy import Role

class Account(SQLModel, table=True):
    identifier: str = Field(primary_key=True, max_length=255)
    balance: int = Field(default=0, ge=0, sa_column=Column(BigInteger, nullable=False))
    role: Role = Field(default=Role.STANDARD)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

class TransactionRecord(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    sender: str = Field(index=True)
    receiver: str = Field(index=True)
    amount: int = Field(gt=0, sa_column=Column(BigInteger, nullable=False))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
