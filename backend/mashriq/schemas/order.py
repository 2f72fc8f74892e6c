"""Pydantic schemas for Orders, transitions and dispute resolution."""
from __future__ import annotations
from datetime import datetime
from typing import Optional, Any
from pydantic import BaseModel, Field

from mashriq.models.order import OrderStatus, CancelledBy


class OrderCreate(BaseModel):
    buyer_id: str
    service_id: str
    buyer_requirements: str = ""


class TransitionRequest(BaseModel):
    target_status: str
    delivery_message: Optional[str] = Field(None, max_length=1000)
    dispute_reason: Optional[str] = Field(None, max_length=1000)
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None
    version: Optional[int] = None  # optional optimistic-lock check

    def payload(self) -> dict[str, Any]:
        return self.model_dump(exclude={"target_status", "version"}, exclude_none=True)


class DisputeResolveRequest(BaseModel):
    resolution: str  # buyer_wins | seller_wins | split
    notes: Optional[str] = None
    seller_amount: Optional[int] = None
    buyer_amount: Optional[int] = None
    seller_percent: Optional[int] = None


class ServiceSnapshotOut(BaseModel):
    title: str
    unit_price: int
    delivery_days: int
    revisions_included: int


class OrderOut(BaseModel):
    order_id: str
    order_number: str
    service_id: str
    service_snapshot: ServiceSnapshotOut
    buyer_id: str
    seller_id: str
    buyer_requirements: str
    amount: int
    platform_fee_percent: int
    platform_fee: int
    seller_earnings: int
    status: OrderStatus
    revisions_used: int
    revisions_allowed: int
    expected_delivery_date: Optional[datetime] = None
    delivery_message: Optional[str] = None
    dispute_reason: Optional[str] = None
    dispute_resolution: Optional[str] = None
    resolution_notes: Optional[str] = None
    resolved_by: Optional[str] = None
    cancelled_by: Optional[CancelledBy] = None
    cancellation_reason: Optional[str] = None
    accepted_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    dispute_opened_at: Optional[datetime] = None
    dispute_resolved_at: Optional[datetime] = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    success: bool = True
    order: OrderOut


class OrderListResponse(BaseModel):
    success: bool = True
    orders: list[OrderOut]


class OrderEventOut(BaseModel):
    event_id: str
    actor_id: str
    actor_role: str
    action: str
    from_status: Optional[str] = None
    to_status: str
    before_snapshot: Optional[dict[str, Any]] = None
    after_snapshot: dict[str, Any]
    created_at: datetime

    model_config = {"from_attributes": True}


class OrderHistoryResponse(BaseModel):
    success: bool = True
    events: list[OrderEventOut]
