"""Escrow coordinator — moves money between wallet balances and order holds.

The hold/release/refund/split_release functions never commit: they run
inside the caller's transaction so that an order's status change and its
money movement land (or roll back) together. ``deposit`` is a top-level
operation and commits on its own.

Balance changes are issued as ``balance = balance + x`` UPDATEs so that two
concurrent credits to the same wallet both apply. A hold is consumed by a
conditional DELETE; a second settlement of the same order finds no row and
fails with ``HoldNotFound``.
"""
import logging
from typing import Optional

from sqlalchemy import delete, select, update, func
from sqlalchemy.orm import Session

from mashriq.config import settings
from mashriq.errors import HoldNotFound, InsufficientFunds, InvalidArgument
from mashriq.models.wallet import Wallet, WalletHold, LedgerEntry, LedgerKind

logger = logging.getLogger(__name__)


def _ensure_wallet(db: Session, user_id: str) -> None:
    if db.get(Wallet, user_id) is None:
        db.add(Wallet(user_id=user_id, balance=0))
        db.flush()


def _record(db: Session, user_id: str, order_id: Optional[str], kind: LedgerKind, amount: int) -> None:
    db.add(LedgerEntry(user_id=user_id, order_id=order_id, kind=kind, amount=amount))


def _credit(db: Session, user_id: str, amount: int, order_id: Optional[str], kind: LedgerKind) -> None:
    if amount == 0:
        return
    _ensure_wallet(db, user_id)
    db.execute(
        update(Wallet)
        .where(Wallet.user_id == user_id)
        .values(balance=Wallet.balance + amount)
        .execution_options(synchronize_session=False)
    )
    _record(db, user_id, order_id, kind, amount)


def _take_hold(db: Session, order_id: str) -> int:
    """Remove the open hold for an order, exactly once. Returns the held amount."""
    held = db.query(WalletHold).filter(WalletHold.order_id == order_id).first()
    if held is None:
        raise HoldNotFound(f"No open escrow hold for order {order_id}", {"order_id": order_id})
    amount = held.amount
    result = db.execute(delete(WalletHold).where(WalletHold.order_id == order_id))
    if result.rowcount != 1:
        raise HoldNotFound(f"Escrow hold for order {order_id} was already settled", {"order_id": order_id})
    return amount


def create_wallet(db: Session, user_id: str) -> None:
    """Open an empty wallet for a new account (no-op if it already exists)."""
    _ensure_wallet(db, user_id)


def deposit(db: Session, user_id: str, amount: int) -> int:
    """External funding event. Returns the new balance."""
    if amount <= 0:
        raise InvalidArgument("Deposit amount must be a positive integer")
    _credit(db, user_id, amount, None, LedgerKind.deposit)
    db.commit()
    logger.info("Deposited %d into wallet %s", amount, user_id)
    return balance_of(db, user_id)


def hold(db: Session, buyer_id: str, order_id: str, amount: int) -> WalletHold:
    """Move ``amount`` from the buyer's balance into a hold keyed by ``order_id``."""
    if amount <= 0:
        raise InvalidArgument("Hold amount must be a positive integer")
    _ensure_wallet(db, buyer_id)
    result = db.execute(
        update(Wallet)
        .where(Wallet.user_id == buyer_id, Wallet.balance >= amount)
        .values(balance=Wallet.balance - amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientFunds(
            f"Available balance is below {amount}",
            {"user_id": buyer_id, "available": balance_of(db, buyer_id), "required": amount},
        )
    held = WalletHold(order_id=order_id, user_id=buyer_id, amount=amount)
    db.add(held)
    _record(db, buyer_id, order_id, LedgerKind.hold, -amount)
    db.flush()
    logger.info("Held %d from %s for order %s", amount, buyer_id, order_id)
    return held


def release(db: Session, order_id: str, seller_id: str, amount: int, platform_fee: int = 0) -> None:
    """Settle a hold in the seller's favour; ``platform_fee`` of it goes to the platform wallet."""
    held_amount = _take_hold(db, order_id)
    if held_amount != amount or not 0 <= platform_fee <= amount:
        raise InvalidArgument(
            f"Release of {amount} (fee {platform_fee}) does not match held amount {held_amount}",
            {"order_id": order_id},
        )
    _credit(db, seller_id, amount - platform_fee, order_id, LedgerKind.release)
    _credit(db, settings.PLATFORM_ACCOUNT_ID, platform_fee, order_id, LedgerKind.fee)
    logger.info(
        "Released hold for order %s: %d to seller %s, %d platform fee",
        order_id, amount - platform_fee, seller_id, platform_fee,
    )


def refund(db: Session, order_id: str, buyer_id: str, amount: int) -> None:
    """Return a hold to the buyer in full."""
    held_amount = _take_hold(db, order_id)
    if held_amount != amount:
        raise InvalidArgument(
            f"Refund of {amount} does not match held amount {held_amount}", {"order_id": order_id}
        )
    _credit(db, buyer_id, amount, order_id, LedgerKind.refund)
    logger.info("Refunded %d to buyer %s for order %s", amount, buyer_id, order_id)


def split_release(
    db: Session,
    order_id: str,
    seller_id: str,
    seller_amount: int,
    buyer_id: str,
    buyer_amount: int,
) -> None:
    """Divide a hold between seller and buyer. The parts must add up to the hold."""
    held = hold_for(db, order_id)
    if held is None:
        raise HoldNotFound(f"No open escrow hold for order {order_id}", {"order_id": order_id})
    held_amount = held.amount
    if seller_amount < 0 or buyer_amount < 0 or seller_amount + buyer_amount != held_amount:
        raise InvalidArgument(
            f"Split {seller_amount}/{buyer_amount} does not add up to held amount {held_amount}",
            {"order_id": order_id},
        )
    _take_hold(db, order_id)
    _credit(db, seller_id, seller_amount, order_id, LedgerKind.split_release)
    _credit(db, buyer_id, buyer_amount, order_id, LedgerKind.split_refund)
    logger.info(
        "Split hold for order %s: %d to seller %s, %d to buyer %s",
        order_id, seller_amount, seller_id, buyer_amount, buyer_id,
    )


def balance_of(db: Session, user_id: str) -> int:
    balance = db.execute(select(Wallet.balance).where(Wallet.user_id == user_id)).scalar()
    return balance or 0


def hold_for(db: Session, order_id: str) -> Optional[WalletHold]:
    return db.query(WalletHold).filter(WalletHold.order_id == order_id).first()


def open_holds(db: Session, user_id: str) -> list[WalletHold]:
    return (
        db.query(WalletHold)
        .filter(WalletHold.user_id == user_id)
        .order_by(WalletHold.created_at)
        .all()
    )


def total_in_circulation(db: Session) -> int:
    """Sum of every wallet balance plus every open hold."""
    balances = db.execute(select(func.coalesce(func.sum(Wallet.balance), 0))).scalar()
    holds = db.execute(select(func.coalesce(func.sum(WalletHold.amount), 0))).scalar()
    return balances + holds


def total_deposited(db: Session) -> int:
    return db.execute(
        select(func.coalesce(func.sum(LedgerEntry.amount), 0)).where(LedgerEntry.kind == LedgerKind.deposit)
    ).scalar()
