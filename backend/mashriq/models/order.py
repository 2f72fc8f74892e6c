"""Order ORM model — the aggregate advanced by the order state machine."""
import uuid
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, DateTime, JSON, Text, ForeignKey, Enum as SAEnum
from mashriq.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    delivered = "delivered"
    revision = "revision"
    approved = "approved"
    completed = "completed"
    disputed = "disputed"
    cancelled = "cancelled"
    refunded = "refunded"


TERMINAL_STATUSES = frozenset({OrderStatus.completed, OrderStatus.cancelled, OrderStatus.refunded})


class CancelledBy(str, enum.Enum):
    buyer = "buyer"
    seller = "seller"
    admin = "admin"
    system = "system"


class Order(Base):
    __tablename__ = "orders"

    order_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_number = Column(String(32), nullable=False, unique=True)
    service_id = Column(String(36), ForeignKey("services.service_id"), nullable=False, index=True)
    # {title, unit_price, delivery_days, revisions_included} frozen at creation
    service_snapshot = Column(JSON, nullable=False)
    buyer_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    seller_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    buyer_requirements = Column(Text, nullable=False, default="")

    amount = Column(Integer, nullable=False)
    platform_fee_percent = Column(Integer, nullable=False)
    platform_fee = Column(Integer, nullable=False)
    seller_earnings = Column(Integer, nullable=False)

    status = Column(SAEnum(OrderStatus), nullable=False, default=OrderStatus.pending, index=True)
    revisions_used = Column(Integer, nullable=False, default=0)
    revisions_allowed = Column(Integer, nullable=False, default=1)

    expected_delivery_date = Column(DateTime(timezone=True), nullable=True)
    delivery_message = Column(Text, nullable=True)

    dispute_reason = Column(Text, nullable=True)
    dispute_resolution = Column(String(100), nullable=True)
    resolution_notes = Column(Text, nullable=True)
    resolved_by = Column(String(36), ForeignKey("users.user_id"), nullable=True)

    cancelled_by = Column(SAEnum(CancelledBy), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    accepted_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    dispute_opened_at = Column(DateTime(timezone=True), nullable=True)
    dispute_resolved_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # Every UPDATE is issued as "... WHERE version = <read version>"
    __mapper_args__ = {"version_id_col": version}

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
