"""Pydantic schemas for Services (listings)."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ServiceCreate(BaseModel):
    seller_id: str
    title: str = Field(..., min_length=1, max_length=200)
    price: int = Field(..., gt=0)  # minor units
    delivery_days: int = Field(..., gt=0)
    revisions_included: int = Field(1, ge=0)


class ServiceUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[int] = Field(None, gt=0)
    delivery_days: Optional[int] = Field(None, gt=0)
    revisions_included: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ServiceOut(BaseModel):
    service_id: str
    seller_id: str
    title: str
    price: int
    delivery_days: int
    revisions_included: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
