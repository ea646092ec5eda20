from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from ..core.errors import FailureKind
from ..core.policy import Role

class AccountCreate(BaseModel):
    identifier: str = Field(..., min_length=1, description="Username that owns the account")

class AccountResponse(BaseModel):
    identifier: str
    role: Role
    created_at: datetime
    balance: int = Field(..., ge=0, description="Balance in minor units (e.g. cents)")

class TransferRequest(BaseModel):
    receiver: str
    # Left untyped so JSON booleans and nulls reach parse_amount unconverted.
    amount: Any = Field(..., description="Unvalidated amount in minor units")

class TransferSuccess(BaseModel):
    status: Literal["ok"] = "ok"
    record_id: int
    sender: str
    receiver: str
    amount: int
    sender_balance: int
    receiver_balance: int
    sender_charged: bool = Field(
        ..., description="False when the sender's role skips the debit"
    )
    created_at: datetime

class TransferFailure(BaseModel):
    status: Literal["denied"] = "denied"
    kind: FailureKind
    message: str

TransferResult = Union[TransferSuccess, TransferFailure]

class HistoryItemResponse(BaseModel):
    id: int
    created_at: datetime
    sender: str
    receiver: str
    amount: int
    direction: Literal["sent", "received"]
    counterparty: str

class HistoryResponse(BaseModel):
    items: list[HistoryItemResponse]
    next_cursor: Optional[str] = None
