"""Order state machine — the only code path that changes ``Order.status``.

Responsibilities:
- Transition table: which (from, to) edges exist and which parties may take them
- Side effects per edge (timestamps, revision counter, dispute fields)
- Escrow settlement on financially relevant edges, in the same transaction
- Optimistic locking via the ``version`` column, with bounded replay
- Order history ledger (OrderEvent) for every write

``approved`` is accepted as a request target but never persisted: approving
a delivery releases the hold and lands the order in ``completed`` in one
commit, so no "approved but unpaid" state is ever visible.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from mashriq.config import settings
from mashriq.errors import (
    Conflict,
    Forbidden,
    HoldNotFound,
    InvalidArgument,
    InvalidTransition,
    NotFound,
    RevisionLimitExceeded,
)
from mashriq.models.order import Order, OrderStatus, CancelledBy
from mashriq.models.order_event import OrderEvent
from mashriq.services import escrow_service
from mashriq.services.actor import Actor, Party, party_of

logger = logging.getLogger(__name__)

S = OrderStatus
BUYER_OR_SELLER = frozenset({Party.buyer, Party.seller})


@dataclass(frozen=True)
class Edge:
    parties: frozenset

    def allows(self, party: Party) -> bool:
        if party == Party.system:
            # Trusted jobs stand in for buyer/seller, never for an admin.
            return bool(self.parties & BUYER_OR_SELLER)
        return party in self.parties


TRANSITIONS: dict[tuple[OrderStatus, OrderStatus], Edge] = {
    (S.pending, S.in_progress): Edge(frozenset({Party.seller})),
    (S.pending, S.cancelled): Edge(frozenset({Party.buyer, Party.seller, Party.admin})),
    (S.in_progress, S.delivered): Edge(frozenset({Party.seller})),
    (S.in_progress, S.disputed): Edge(BUYER_OR_SELLER),
    (S.delivered, S.completed): Edge(frozenset({Party.buyer})),
    (S.delivered, S.revision): Edge(frozenset({Party.buyer})),
    (S.delivered, S.disputed): Edge(BUYER_OR_SELLER),
    (S.revision, S.delivered): Edge(frozenset({Party.seller})),
    (S.revision, S.disputed): Edge(BUYER_OR_SELLER),
    (S.disputed, S.completed): Edge(frozenset({Party.admin})),
    (S.disputed, S.refunded): Edge(frozenset({Party.admin})),
}


def allowed_targets(status: OrderStatus) -> list[OrderStatus]:
    return [to for (frm, to) in TRANSITIONS if frm == status]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def order_snapshot(order: Order) -> dict[str, Any]:
    """Serialize an order to a JSON-safe dict for the history ledger."""
    return {
        "order_id": order.order_id,
        "order_number": order.order_number,
        "status": order.status.value if order.status else None,
        "amount": order.amount,
        "platform_fee": order.platform_fee,
        "seller_earnings": order.seller_earnings,
        "revisions_used": order.revisions_used,
        "revisions_allowed": order.revisions_allowed,
        "expected_delivery_date": _iso(order.expected_delivery_date),
        "delivered_at": _iso(order.delivered_at),
        "dispute_reason": order.dispute_reason,
        "dispute_resolution": order.dispute_resolution,
        "cancelled_by": order.cancelled_by.value if order.cancelled_by else None,
        "version": order.version,
    }


def record_event(
    db: Session,
    order: Order,
    actor: Actor,
    action: str,
    from_status: Optional[OrderStatus],
    before: Optional[dict[str, Any]],
) -> None:
    db.add(OrderEvent(
        order_id=order.order_id,
        actor_id=actor.actor_id,
        actor_role=actor.role.value,
        action=action,
        from_status=from_status.value if from_status else None,
        to_status=order.status.value,
        before_snapshot=before,
        after_snapshot=order_snapshot(order),
    ))


def load_order(db: Session, order_id: str) -> Order:
    order = db.query(Order).filter(Order.order_id == order_id).first()
    if not order:
        raise NotFound(f"Order {order_id} not found")
    return order


def run_order_write(db: Session, order_id: str, apply: Callable[[], Order]) -> Order:
    """Run ``apply`` and commit; replay from a fresh read when the version moved.

    ``apply`` must (re)load the order itself so each attempt validates
    against current state. Any other error rolls the whole unit back.
    """
    attempts = settings.MAX_TRANSITION_RETRIES
    for attempt in range(1, attempts + 1):
        try:
            order = apply()
            db.commit()
        except StaleDataError:
            db.rollback()
            logger.warning("Concurrent write on order %s (attempt %d/%d)", order_id, attempt, attempts)
            continue
        except Exception:
            db.rollback()
            raise
        db.refresh(order)
        return order
    raise Conflict(
        f"Order {order_id} was modified concurrently; gave up after {attempts} attempts",
        {"order_id": order_id},
    )


def settle(db: Session, order: Order, operation: Callable[[], None]) -> None:
    """Run an escrow operation for ``order``; a missing hold is an invariant breach."""
    try:
        operation()
    except HoldNotFound:
        logger.error(
            "Escrow hold missing while settling order %s: %s",
            order.order_id, order_snapshot(order),
        )
        raise


def release_to_seller(db: Session, order: Order) -> None:
    settle(db, order, lambda: escrow_service.release(
        db, order.order_id, order.seller_id, order.amount, order.platform_fee,
    ))


def refund_to_buyer(db: Session, order: Order) -> None:
    settle(db, order, lambda: escrow_service.refund(
        db, order.order_id, order.buyer_id, order.amount,
    ))


def _normalize_target(order: Order, target: str | OrderStatus) -> OrderStatus:
    try:
        requested = OrderStatus(target)
    except ValueError:
        raise InvalidArgument(f"Unknown order status '{target}'")
    if requested == S.approved:
        # Approval is only meaningful for a delivered order and settles immediately.
        if order.status != S.delivered:
            raise InvalidTransition(f"Cannot move order from {order.status.value} to approved")
        return S.completed
    return requested


def _apply_transition(
    db: Session,
    order: Order,
    actor: Actor,
    party: Party,
    target: OrderStatus,
    payload: dict[str, Any],
) -> None:
    now = _utcnow()
    source = order.status

    if target == S.in_progress:
        # Delivery clock restarts at acceptance.
        days = order.service_snapshot["delivery_days"]
        order.accepted_at = now
        order.expected_delivery_date = now + timedelta(days=days)

    elif target == S.delivered:
        order.delivered_at = now
        order.delivery_message = payload.get("delivery_message")

    elif target == S.revision:
        order.revisions_used += 1

    elif target == S.disputed:
        reason = (payload.get("dispute_reason") or "").strip()
        if not reason:
            raise InvalidArgument("A dispute reason is required")
        order.dispute_reason = reason
        order.dispute_opened_at = now

    elif target == S.cancelled:
        order.cancelled_by = CancelledBy(party.value)
        order.cancelled_at = now
        order.cancellation_reason = payload.get("cancellation_reason")

    elif target == S.completed:
        order.completed_at = now
        if source == S.disputed:
            mark_resolved(order, actor, "seller_wins", payload.get("notes"), now)

    elif target == S.refunded:
        order.cancelled_by = CancelledBy.admin
        order.cancelled_at = now
        mark_resolved(order, actor, "buyer_wins", payload.get("notes"), now)

    order.status = target
    # The version check happens here, before any money moves.
    db.flush()

    if target == S.completed:
        release_to_seller(db, order)
    elif target in (S.cancelled, S.refunded):
        refund_to_buyer(db, order)


def mark_resolved(order: Order, actor: Actor, resolution: str, notes: Optional[str], now: datetime) -> None:
    order.dispute_resolution = resolution
    order.resolved_by = actor.actor_id
    order.resolution_notes = notes
    order.dispute_resolved_at = now


def transition(
    db: Session,
    order_id: str,
    actor: Actor,
    target_status: str | OrderStatus,
    payload: Optional[dict[str, Any]] = None,
    expected_version: Optional[int] = None,
) -> Order:
    """Move an order along one edge of the transition table.

    Raises NotFound, InvalidArgument, InvalidTransition, Forbidden,
    RevisionLimitExceeded, Conflict or HoldNotFound.
    """
    payload = payload or {}

    def apply() -> Order:
        order = load_order(db, order_id)
        if expected_version is not None and order.version != expected_version:
            raise Conflict(
                f"Version mismatch: expected {order.version}, got {expected_version}. Re-fetch and retry.",
                {"order_id": order_id},
            )

        target = _normalize_target(order, target_status)
        edge = TRANSITIONS.get((order.status, target))
        if edge is None:
            raise InvalidTransition(
                f"Cannot move order from {order.status.value} to {target.value}",
                {"order_id": order_id, "allowed": [s.value for s in allowed_targets(order.status)]},
            )

        party = party_of(actor, order.buyer_id, order.seller_id)
        if not edge.allows(party):
            raise Forbidden(
                f"{party.value} may not move order from {order.status.value} to {target.value}",
                {"order_id": order_id},
            )

        if target == S.revision and order.revisions_used >= order.revisions_allowed:
            raise RevisionLimitExceeded(
                f"All {order.revisions_allowed} revision(s) have been used",
                {"order_id": order_id},
            )

        source = order.status
        before = order_snapshot(order)
        _apply_transition(db, order, actor, party, target, payload)
        record_event(db, order, actor, "transition", source, before)
        return order

    order = run_order_write(db, order_id, apply)
    logger.info("Order %s moved to %s by %s (%s)", order_id, order.status.value, actor.actor_id, actor.role.value)
    return order
