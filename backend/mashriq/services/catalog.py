"""Service catalog and user directory lookups used by order creation."""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from mashriq.models.service import Service
from mashriq.models.user import User


@dataclass(frozen=True)
class Listing:
    service_id: str
    seller_id: str
    title: str
    price: int
    delivery_days: int
    revisions_included: int


def get_active_listing(db: Session, service_id: str) -> Optional[Listing]:
    """Return the live listing, or None when it does not exist or is inactive."""
    service = db.query(Service).filter(Service.service_id == service_id).first()
    if not service or not service.is_active:
        return None
    return Listing(
        service_id=service.service_id,
        seller_id=service.seller_id,
        title=service.title,
        price=service.price,
        delivery_days=service.delivery_days,
        revisions_included=service.revisions_included,
    )


def is_active(db: Session, user_id: str) -> bool:
    user = db.query(User).filter(User.user_id == user_id).first()
    return bool(user and user.is_active)
