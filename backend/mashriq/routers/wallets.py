"""Wallet API routes — funding and balance inspection."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mashriq.database import get_db
from mashriq.errors import NotFound
from mashriq.models.wallet import Wallet
from mashriq.schemas.wallet import DepositRequest, WalletOut
from mashriq.services import escrow_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _wallet_view(db: Session, user_id: str) -> dict:
    return {
        "user_id": user_id,
        "balance": escrow_service.balance_of(db, user_id),
        "holds": escrow_service.open_holds(db, user_id),
    }


@router.post("/{user_id}/deposit", response_model=WalletOut)
def deposit(user_id: str, payload: DepositRequest, db: Session = Depends(get_db)):
    """Credit externally collected funds to a wallet."""
    if db.get(Wallet, user_id) is None:
        raise NotFound(f"Wallet for {user_id} not found")
    escrow_service.deposit(db, user_id, payload.amount)
    return _wallet_view(db, user_id)


@router.get("/{user_id}", response_model=WalletOut)
def get_wallet(user_id: str, db: Session = Depends(get_db)):
    """Spendable balance plus the holds currently escrowed from it."""
    if db.get(Wallet, user_id) is None:
        raise NotFound(f"Wallet for {user_id} not found")
    return _wallet_view(db, user_id)
