"""Service (listing) API routes.

Listings are read by order creation; editing one never touches orders
already placed against it (they carry their own snapshot).
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mashriq.database import get_db
from mashriq.errors import NotFound
from mashriq.models.service import Service
from mashriq.models.user import User
from mashriq.schemas.service import ServiceCreate, ServiceUpdate, ServiceOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ServiceOut, status_code=status.HTTP_201_CREATED)
def create_service(payload: ServiceCreate, db: Session = Depends(get_db)):
    """Publish a new listing."""
    seller = db.query(User).filter(User.user_id == payload.seller_id).first()
    if not seller:
        raise NotFound("Seller user not found")
    service = Service(**payload.model_dump())
    db.add(service)
    db.commit()
    db.refresh(service)
    logger.info("Created service '%s' (%s) by seller %s", service.title, service.service_id, service.seller_id)
    return service


@router.get("/{service_id}", response_model=ServiceOut)
def get_service(service_id: str, db: Session = Depends(get_db)):
    service = db.query(Service).filter(Service.service_id == service_id).first()
    if not service:
        raise NotFound("Service not found")
    return service


@router.patch("/{service_id}", response_model=ServiceOut)
def update_service(service_id: str, payload: ServiceUpdate, db: Session = Depends(get_db)):
    """Edit a listing (partial update)."""
    service = db.query(Service).filter(Service.service_id == service_id).first()
    if not service:
        raise NotFound("Service not found")
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(service, field, value)
    db.commit()
    db.refresh(service)
    logger.info("Updated service %s", service_id)
    return service
