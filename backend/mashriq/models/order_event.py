"""OrderEvent ORM model — append-only history of every order write."""
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey
from mashriq.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderEvent(Base):
    __tablename__ = "order_events"

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(36), ForeignKey("orders.order_id"), nullable=False, index=True)
    actor_id = Column(String(36), nullable=False)
    actor_role = Column(String(20), nullable=False)
    action = Column(String(30), nullable=False)  # create | transition | resolve
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=False)
    before_snapshot = Column(JSON, nullable=True)
    after_snapshot = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
