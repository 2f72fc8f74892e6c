"""Dispute resolver: admin-only forced exit from ``disputed``.

Split input contract: either explicit ``seller_amount`` + ``buyer_amount``
in minor units, or ``seller_percent`` (integer 0..100, seller share rounded
half up, buyer receives the remainder). Both forms must land on parts that
add up to the order amount exactly; nothing is credited otherwise.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.orm import Session

from mashriq.errors import Forbidden, InvalidArgument, InvalidTransition
from mashriq.models.order import Order, OrderStatus, CancelledBy
from mashriq.services import escrow_service
from mashriq.services.actor import Actor, Party, party_of
from mashriq.services.order_state_machine import (
    load_order,
    mark_resolved,
    order_snapshot,
    record_event,
    refund_to_buyer,
    release_to_seller,
    run_order_write,
    settle,
)

logger = logging.getLogger(__name__)


class DisputeResolution(str, enum.Enum):
    buyer_wins = "buyer_wins"
    seller_wins = "seller_wins"
    split = "split"


@dataclass(frozen=True)
class SplitTerms:
    seller_amount: int
    buyer_amount: int

    def describe(self) -> str:
        return f"split:seller={self.seller_amount},buyer={self.buyer_amount}"


def compute_split(
    amount: int,
    seller_amount: Optional[int] = None,
    buyer_amount: Optional[int] = None,
    seller_percent: Optional[int] = None,
) -> SplitTerms:
    """Validate admin split input and turn it into exact minor-unit parts."""
    fixed = seller_amount is not None or buyer_amount is not None
    if fixed and seller_percent is not None:
        raise InvalidArgument("Give either fixed amounts or a seller percent, not both")

    if seller_percent is not None:
        if isinstance(seller_percent, bool) or not isinstance(seller_percent, int) or not 0 <= seller_percent <= 100:
            raise InvalidArgument("seller_percent must be an integer between 0 and 100")
        seller_part = int(
            (Decimal(amount) * Decimal(seller_percent) / Decimal(100)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
        )
        return SplitTerms(seller_amount=seller_part, buyer_amount=amount - seller_part)

    if seller_amount is None or buyer_amount is None:
        raise InvalidArgument("A split needs both seller_amount and buyer_amount, or seller_percent")
    if seller_amount < 0 or buyer_amount < 0:
        raise InvalidArgument("Split amounts cannot be negative")
    if seller_amount + buyer_amount != amount:
        raise InvalidArgument(
            f"Split amounts {seller_amount} + {buyer_amount} must equal the order amount {amount}"
        )
    return SplitTerms(seller_amount=seller_amount, buyer_amount=buyer_amount)


def _parse_resolution(resolution: str | DisputeResolution) -> DisputeResolution:
    try:
        return DisputeResolution(resolution)
    except ValueError:
        raise InvalidArgument(f"Unknown dispute resolution '{resolution}'")


def list_open_disputes(db: Session, limit: int = 50) -> list[Order]:
    """Disputed orders awaiting an admin, oldest dispute first."""
    return (
        db.query(Order)
        .filter(Order.status == OrderStatus.disputed)
        .order_by(Order.dispute_opened_at)
        .limit(limit)
        .all()
    )


def _apply_resolution(
    db: Session,
    order: Order,
    actor: Actor,
    resolution: DisputeResolution,
    notes: Optional[str],
    terms: Optional[SplitTerms],
) -> None:
    now = datetime.now(timezone.utc)
    if resolution == DisputeResolution.buyer_wins:
        order.status = OrderStatus.refunded
        order.cancelled_by = CancelledBy.admin
        order.cancelled_at = now
        mark_resolved(order, actor, resolution.value, notes, now)
    elif resolution == DisputeResolution.seller_wins:
        order.status = OrderStatus.completed
        order.completed_at = now
        mark_resolved(order, actor, resolution.value, notes, now)
    else:
        order.status = OrderStatus.completed
        order.completed_at = now
        mark_resolved(order, actor, terms.describe(), notes, now)
    db.flush()

    if resolution == DisputeResolution.buyer_wins:
        refund_to_buyer(db, order)
    elif resolution == DisputeResolution.seller_wins:
        release_to_seller(db, order)
    else:
        settle(db, order, lambda: escrow_service.split_release(
            db, order.order_id, order.seller_id, terms.seller_amount, order.buyer_id, terms.buyer_amount,
        ))


def resolve_dispute(
    db: Session,
    order_id: str,
    actor: Actor,
    resolution: str | DisputeResolution,
    notes: Optional[str] = None,
    seller_amount: Optional[int] = None,
    buyer_amount: Optional[int] = None,
    seller_percent: Optional[int] = None,
) -> Order:
    """Force a disputed order into a terminal state and settle its escrow."""

    def apply() -> Order:
        order = load_order(db, order_id)
        if party_of(actor, order.buyer_id, order.seller_id) != Party.admin:
            raise Forbidden("Only an uninvolved admin may resolve a dispute", {"order_id": order_id})
        outcome = _parse_resolution(resolution)
        if order.status != OrderStatus.disputed:
            raise InvalidTransition(
                f"Order is {order.status.value}; only disputed orders can be resolved",
                {"order_id": order_id},
            )
        terms = None
        if outcome == DisputeResolution.split:
            terms = compute_split(order.amount, seller_amount, buyer_amount, seller_percent)

        before = order_snapshot(order)
        _apply_resolution(db, order, actor, outcome, notes, terms)
        record_event(db, order, actor, "resolve", OrderStatus.disputed, before)
        return order

    order = run_order_write(db, order_id, apply)
    logger.info(
        "Dispute on order %s resolved as %s by admin %s",
        order_id, order.dispute_resolution, actor.actor_id,
    )
    return order
