"""Dispute resolution routes (admin only)."""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mashriq.database import get_db
from mashriq.errors import Forbidden
from mashriq.routers.deps import get_actor
from mashriq.schemas.order import DisputeResolveRequest, OrderListResponse, OrderResponse
from mashriq.services import dispute_service
from mashriq.services.actor import Actor

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=OrderListResponse)
def list_disputes(
    limit: int = Query(50, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Disputed orders waiting for an admin decision."""
    if not actor.is_admin:
        raise Forbidden("Only admins may view the dispute queue")
    return {"orders": dispute_service.list_open_disputes(db, limit=limit)}


@router.post("/{order_id}/resolve", response_model=OrderResponse)
def resolve_dispute(
    order_id: str,
    payload: DisputeResolveRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Resolve a disputed order as buyer_wins, seller_wins or split."""
    order = dispute_service.resolve_dispute(
        db=db,
        order_id=order_id,
        actor=actor,
        resolution=payload.resolution,
        notes=payload.notes,
        seller_amount=payload.seller_amount,
        buyer_amount=payload.buyer_amount,
        seller_percent=payload.seller_percent,
    )
    return {"order": order}
