"""Review API routes."""
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mashriq.database import get_db
from mashriq.routers.deps import get_actor
from mashriq.schemas.review import ReviewCreate, ReviewListResponse, ReviewResponse, RatingSummaryOut
from mashriq.services import rating_service, review_service
from mashriq.services.actor import Actor

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def create_review(payload: ReviewCreate, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    """Review a completed order (its buyer only, once)."""
    review = review_service.create_review(
        db=db,
        order_id=payload.order_id,
        buyer_id=actor.actor_id,
        rating=payload.rating,
        comment=payload.comment,
    )
    return {"review": review}


@router.get("/order/{order_id}", response_model=ReviewResponse)
def get_review_for_order(order_id: str, db: Session = Depends(get_db)):
    return {"review": review_service.get_review_for_order(db, order_id)}


@router.get("/seller/{seller_id}", response_model=ReviewListResponse)
def list_seller_reviews(seller_id: str, limit: int = Query(50, ge=1, le=100), db: Session = Depends(get_db)):
    """A seller's reviews, newest first."""
    return {"reviews": review_service.list_for_seller(db, seller_id, limit=limit)}


@router.get("/seller/{seller_id}/summary", response_model=RatingSummaryOut)
def seller_summary(seller_id: str, db: Session = Depends(get_db)):
    summary = rating_service.seller_rating(db, seller_id)
    return {"average_rating": summary.average_rating, "reviews_count": summary.reviews_count}


@router.get("/service/{service_id}/summary", response_model=RatingSummaryOut)
def service_summary(service_id: str, db: Session = Depends(get_db)):
    summary = rating_service.service_rating(db, service_id)
    return {"average_rating": summary.average_rating, "reviews_count": summary.reviews_count}
