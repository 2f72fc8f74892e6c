"""Rating aggregation — trust metrics derived on read, never stored.

Seller and service ratings, and a seller's completed-sales count, are
computed from the reviews and orders tables each time they are asked for,
so there is no denormalized counter to keep in sync.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from mashriq.models.order import Order, OrderStatus
from mashriq.models.review import Review

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RatingSummary:
    average_rating: float
    reviews_count: int


@dataclass(frozen=True)
class SellerStats:
    seller_id: str
    completed_orders: int
    cancelled_orders: int
    average_rating: float
    reviews_count: int


def _summarize(db: Session, *criteria) -> RatingSummary:
    average, count = db.query(func.avg(Review.rating), func.count(Review.review_id)).filter(*criteria).one()
    if not count:
        return RatingSummary(average_rating=0.0, reviews_count=0)
    return RatingSummary(average_rating=round(float(average), 1), reviews_count=count)


def seller_rating(db: Session, seller_id: str) -> RatingSummary:
    return _summarize(db, Review.seller_id == seller_id)


def service_rating(db: Session, service_id: str) -> RatingSummary:
    return _summarize(db, Review.service_id == service_id)


def seller_stats(db: Session, seller_id: str) -> SellerStats:
    counts = dict(
        db.query(Order.status, func.count(Order.order_id))
        .filter(Order.seller_id == seller_id)
        .group_by(Order.status)
        .all()
    )
    rating = seller_rating(db, seller_id)
    return SellerStats(
        seller_id=seller_id,
        completed_orders=counts.get(OrderStatus.completed, 0),
        cancelled_orders=counts.get(OrderStatus.cancelled, 0),
        average_rating=rating.average_rating,
        reviews_count=rating.reviews_count,
    )


def recompute(db: Session, seller_id: str, service_id: Optional[str] = None) -> None:
    """Post-review hook. Aggregates are derived on read, so this only refreshes and logs them."""
    seller = seller_rating(db, seller_id)
    logger.info("Seller %s rating now %.1f over %d review(s)", seller_id, seller.average_rating, seller.reviews_count)
    if service_id:
        service = service_rating(db, service_id)
        logger.info(
            "Service %s rating now %.1f over %d review(s)", service_id, service.average_rating, service.reviews_count
        )
