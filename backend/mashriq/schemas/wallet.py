"""Pydantic schemas for Wallets."""
from datetime import datetime
from pydantic import BaseModel


class DepositRequest(BaseModel):
    amount: int


class HoldOut(BaseModel):
    order_id: str
    amount: int
    created_at: datetime

    model_config = {"from_attributes": True}


class WalletOut(BaseModel):
    success: bool = True
    user_id: str
    balance: int
    holds: list[HoldOut] = []
