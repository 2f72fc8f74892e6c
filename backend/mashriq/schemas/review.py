"""Pydantic schemas for Reviews and derived rating summaries."""
from datetime import datetime
from pydantic import BaseModel


class ReviewCreate(BaseModel):
    order_id: str
    rating: int
    comment: str = ""


class ReviewOut(BaseModel):
    review_id: str
    order_id: str
    service_id: str
    seller_id: str
    reviewer_id: str
    rating: int
    comment: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ReviewResponse(BaseModel):
    success: bool = True
    review: ReviewOut


class ReviewListResponse(BaseModel):
    success: bool = True
    reviews: list[ReviewOut]


class RatingSummaryOut(BaseModel):
    success: bool = True
    average_rating: float
    reviews_count: int
