"""Service (listing) ORM model — read by the catalog when an order is placed."""
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from mashriq.database import Base


class Service(Base):
    __tablename__ = "services"

    service_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    seller_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    price = Column(Integer, nullable=False)  # minor units
    delivery_days = Column(Integer, nullable=False)
    revisions_included = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
