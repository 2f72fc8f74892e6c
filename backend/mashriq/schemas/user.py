"""Pydantic schemas for Users."""
from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel

from mashriq.models.user import UserRole


class UserCreate(BaseModel):
    display_name: str
    role: UserRole = UserRole.user


class UserUpdate(BaseModel):
    is_active: bool


class UserOut(BaseModel):
    user_id: str
    display_name: str
    role: UserRole
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class SellerStatsOut(BaseModel):
    success: bool = True
    seller_id: str
    completed_orders: int
    cancelled_orders: int
    average_rating: float
    reviews_count: int
