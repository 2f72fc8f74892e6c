"""Order creation and read-only queries.

Creation freezes the listing into ``service_snapshot``, computes the fee
split once, and places the escrow hold in the same commit as the order row.
"""
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mashriq.config import settings
from mashriq.errors import Conflict, InvalidArgument, InvalidService, SelfPurchase
from mashriq.models.order import Order, OrderStatus
from mashriq.models.order_event import OrderEvent
from mashriq.services import catalog, escrow_service
from mashriq.services.actor import Actor, ActorRole, resolve_actor
from mashriq.services.order_state_machine import load_order, record_event

logger = logging.getLogger(__name__)

ROLE_FILTERS = ("buyer", "seller", "all")


def compute_fee_split(amount: int, fee_percent) -> tuple[int, int]:
    """Round the fee (half up) first, then derive earnings by subtraction."""
    if amount < 0:
        raise InvalidArgument("Amount cannot be negative")
    percent = Decimal(str(fee_percent))
    if percent < 0 or percent > 100:
        raise InvalidArgument("Fee percent must be between 0 and 100")
    fee = int((Decimal(amount) * percent / Decimal(100)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return fee, amount - fee


def _next_order_number(db: Session, now: datetime) -> str:
    prefix = f"{settings.ORDER_NUMBER_PREFIX}-{now.year}-"
    count = db.query(Order).filter(Order.order_number.like(f"{prefix}%")).count()
    return f"{prefix}{count + 1:06d}"


def create_order(db: Session, buyer_id: str, service_id: str, buyer_requirements: str = "") -> Order:
    """Place an order against a live listing and escrow its price."""
    buyer = resolve_actor(db, buyer_id)
    listing = catalog.get_active_listing(db, service_id)
    if listing is None:
        raise InvalidService(f"Service {service_id} is not available")
    if not catalog.is_active(db, listing.seller_id):
        raise InvalidService(f"Seller of service {service_id} is not active")
    if listing.seller_id == buyer.actor_id:
        raise SelfPurchase("You cannot order your own service")
    if len(buyer_requirements or "") > 2000:
        raise InvalidArgument("Requirements must be at most 2000 characters")

    fee, earnings = compute_fee_split(listing.price, settings.PLATFORM_FEE_PERCENT)
    snapshot = {
        "title": listing.title,
        "unit_price": listing.price,
        "delivery_days": listing.delivery_days,
        "revisions_included": listing.revisions_included,
    }

    attempts = settings.MAX_TRANSITION_RETRIES
    for attempt in range(1, attempts + 1):
        now = datetime.now(timezone.utc)
        order = Order(
            order_number=_next_order_number(db, now),
            service_id=listing.service_id,
            service_snapshot=snapshot,
            buyer_id=buyer.actor_id,
            seller_id=listing.seller_id,
            buyer_requirements=buyer_requirements or "",
            amount=listing.price,
            platform_fee_percent=settings.PLATFORM_FEE_PERCENT,
            platform_fee=fee,
            seller_earnings=earnings,
            status=OrderStatus.pending,
            revisions_used=0,
            revisions_allowed=listing.revisions_included,
            expected_delivery_date=now + timedelta(days=listing.delivery_days),
            created_at=now,
        )
        try:
            db.add(order)
            db.flush()
            escrow_service.hold(db, buyer.actor_id, order.order_id, order.amount)
            record_event(db, order, buyer, "create", None, None)
            db.commit()
        except IntegrityError:
            # Another order took the same number; draw a new one.
            db.rollback()
            logger.warning("Order number collision (attempt %d/%d)", attempt, attempts)
            continue
        except Exception:
            db.rollback()
            raise
        db.refresh(order)
        logger.info(
            "Created order %s (%s) for buyer %s on service %s, amount %d",
            order.order_number, order.order_id, buyer.actor_id, service_id, order.amount,
        )
        return order
    raise Conflict("Could not allocate an order number, retry the request")


def get_order(db: Session, order_id: str) -> Order:
    return load_order(db, order_id)


def list_orders(
    db: Session,
    user_id: str,
    role_filter: str = "all",
    status_filter: Optional[str] = None,
    limit: int = 50,
) -> list[Order]:
    """Orders the user takes part in, newest first."""
    if role_filter not in ROLE_FILTERS:
        raise InvalidArgument(f"Role filter must be one of {', '.join(ROLE_FILTERS)}")
    query = db.query(Order)
    if role_filter == "buyer":
        query = query.filter(Order.buyer_id == user_id)
    elif role_filter == "seller":
        query = query.filter(Order.seller_id == user_id)
    else:
        query = query.filter((Order.buyer_id == user_id) | (Order.seller_id == user_id))
    return _filtered(query, status_filter, limit)


def list_all_orders(db: Session, status_filter: Optional[str] = None, limit: int = 50) -> list[Order]:
    """Every order on the platform, newest first (admin view)."""
    return _filtered(db.query(Order), status_filter, limit)


def _filtered(query, status_filter: Optional[str], limit: int) -> list[Order]:
    if status_filter:
        try:
            query = query.filter(Order.status == OrderStatus(status_filter))
        except ValueError:
            raise InvalidArgument(f"Unknown order status '{status_filter}'")
    return query.order_by(Order.created_at.desc()).limit(limit).all()


def order_history(db: Session, order_id: str) -> list[OrderEvent]:
    load_order(db, order_id)
    return (
        db.query(OrderEvent)
        .filter(OrderEvent.order_id == order_id)
        .order_by(OrderEvent.created_at)
        .all()
    )


def can_view(order: Order, actor: Actor) -> bool:
    return actor.role in (ActorRole.admin, ActorRole.system) or actor.actor_id in (order.buyer_id, order.seller_id)
