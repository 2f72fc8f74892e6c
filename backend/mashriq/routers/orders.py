"""Order API routes — thin callers of order_service and the state machine."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mashriq.database import get_db
from mashriq.errors import Forbidden
from mashriq.routers.deps import get_actor
from mashriq.schemas.order import (
    OrderCreate,
    OrderHistoryResponse,
    OrderListResponse,
    OrderResponse,
    TransitionRequest,
)
from mashriq.services import order_service, order_state_machine
from mashriq.services.actor import Actor

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(payload: OrderCreate, db: Session = Depends(get_db)):
    """Place an order on a live listing; the price is escrowed immediately."""
    order = order_service.create_order(
        db=db,
        buyer_id=payload.buyer_id,
        service_id=payload.service_id,
        buyer_requirements=payload.buyer_requirements,
    )
    return {"order": order}


@router.get("/", response_model=OrderListResponse)
def list_orders(
    user_id: Optional[str] = Query(None, description="Whose orders; omit for every order (admin only)"),
    role: str = Query("all", description="buyer, seller or all"),
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """List the orders a user takes part in, or every order for an admin."""
    if user_id is None:
        if not actor.is_admin:
            raise Forbidden("Only admins may list every order")
        orders = order_service.list_all_orders(db, status_filter=status_filter, limit=limit)
        return {"orders": orders}
    if actor.actor_id != user_id and not actor.is_admin:
        raise Forbidden("You may only list your own orders")
    orders = order_service.list_orders(db, user_id, role_filter=role, status_filter=status_filter, limit=limit)
    return {"orders": orders}


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    """Fetch a single order (buyer, seller or admin only)."""
    order = order_service.get_order(db, order_id)
    if not order_service.can_view(order, actor):
        raise Forbidden("You are not a party to this order")
    return {"order": order}


@router.get("/{order_id}/history", response_model=OrderHistoryResponse)
def get_order_history(order_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    """Every recorded write on the order, oldest first."""
    order = order_service.get_order(db, order_id)
    if not order_service.can_view(order, actor):
        raise Forbidden("You are not a party to this order")
    return {"events": order_service.order_history(db, order_id)}


@router.post("/{order_id}/transition", response_model=OrderResponse)
def transition_order(
    order_id: str,
    payload: TransitionRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Move the order along one edge of its lifecycle."""
    order = order_state_machine.transition(
        db=db,
        order_id=order_id,
        actor=actor,
        target_status=payload.target_status,
        payload=payload.payload(),
        expected_version=payload.version,
    )
    return {"order": order}
