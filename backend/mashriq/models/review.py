"""Review ORM model — at most one per completed order."""
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, CheckConstraint
from mashriq.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating_range"),)

    review_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(36), ForeignKey("orders.order_id"), nullable=False, unique=True)
    service_id = Column(String(36), ForeignKey("services.service_id"), nullable=False, index=True)
    seller_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    reviewer_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
