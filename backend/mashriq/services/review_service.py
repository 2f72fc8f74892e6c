"""Review gate — one immutable review per completed order, by its buyer."""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mashriq.errors import Conflict, Forbidden, InvalidArgument, InvalidState, NotFound
from mashriq.models.order import OrderStatus
from mashriq.models.review import Review
from mashriq.services import rating_service
from mashriq.services.order_state_machine import load_order

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 1000


def _validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise InvalidArgument("Rating must be an integer between 1 and 5")
    return rating


def create_review(db: Session, order_id: str, buyer_id: str, rating, comment: Optional[str] = "") -> Review:
    """Raises NotFound, Forbidden, InvalidState, Conflict or InvalidArgument."""
    order = load_order(db, order_id)
    if order.buyer_id != buyer_id:
        raise Forbidden("Only the buyer of this order may review it", {"order_id": order_id})
    if order.status != OrderStatus.completed:
        raise InvalidState(
            f"Order is {order.status.value}; only completed orders can be reviewed", {"order_id": order_id}
        )
    if db.query(Review).filter(Review.order_id == order_id).first():
        raise Conflict("This order has already been reviewed", {"order_id": order_id})
    rating = _validate_rating(rating)
    comment = comment or ""
    if len(comment) > MAX_COMMENT_LENGTH:
        raise InvalidArgument(f"Comment must be at most {MAX_COMMENT_LENGTH} characters")

    review = Review(
        order_id=order.order_id,
        service_id=order.service_id,
        seller_id=order.seller_id,
        reviewer_id=buyer_id,
        rating=rating,
        comment=comment,
    )
    db.add(review)
    try:
        db.commit()
    except IntegrityError:
        # Unique order_id: a concurrent review won.
        db.rollback()
        raise Conflict("This order has already been reviewed", {"order_id": order_id})
    db.refresh(review)
    logger.info("Review %s (%d stars) created for order %s", review.review_id, rating, order_id)

    try:
        rating_service.recompute(db, order.seller_id, order.service_id)
    except Exception:
        # Aggregation is eventually consistent; the review itself is already stored.
        logger.exception("Rating recompute failed for seller %s", order.seller_id)
    return review


def get_review_for_order(db: Session, order_id: str) -> Review:
    review = db.query(Review).filter(Review.order_id == order_id).first()
    if not review:
        raise NotFound(f"No review for order {order_id}")
    return review


def list_for_seller(db: Session, seller_id: str, limit: int = 50) -> list[Review]:
    """A seller's reviews, newest first."""
    return (
        db.query(Review)
        .filter(Review.seller_id == seller_id)
        .order_by(Review.created_at.desc())
        .limit(limit)
        .all()
    )
