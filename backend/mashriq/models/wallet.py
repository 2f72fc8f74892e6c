"""Wallet, WalletHold and LedgerEntry ORM models — the escrow store.

A wallet's ``balance`` is spendable money. Escrowed money lives in
``wallet_holds`` (one row per active order) until the order settles.
Every movement is appended to ``ledger_entries``.
"""
import uuid
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint, Enum as SAEnum
from mashriq.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerKind(str, enum.Enum):
    deposit = "deposit"
    hold = "hold"
    release = "release"
    fee = "fee"
    refund = "refund"
    split_release = "split_release"
    split_refund = "split_refund"


class Wallet(Base):
    __tablename__ = "wallets"
    __table_args__ = (CheckConstraint("balance >= 0", name="ck_wallet_balance_non_negative"),)

    # Not a foreign key: the platform account has a wallet but no user row.
    user_id = Column(String(36), primary_key=True)
    balance = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class WalletHold(Base):
    __tablename__ = "wallet_holds"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_hold_amount_positive"),)

    order_id = Column(String(36), ForeignKey("orders.order_id"), primary_key=True)
    user_id = Column(String(36), ForeignKey("wallets.user_id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"

    entry_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    order_id = Column(String(36), nullable=True, index=True)
    kind = Column(SAEnum(LedgerKind), nullable=False)
    amount = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
