"""User API routes."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mashriq.database import get_db
from mashriq.errors import Conflict, NotFound
from mashriq.models.user import User
from mashriq.schemas.user import UserCreate, UserUpdate, UserOut, SellerStatsOut
from mashriq.services import escrow_service, rating_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Create a new user together with an empty wallet."""
    user = User(**payload.model_dump())
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise Conflict(f"Display name '{payload.display_name}' is already taken")
    escrow_service.create_wallet(db, user.user_id)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (%s)", user.user_id, user.display_name)
    return user


@router.get("/", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)):
    """List all users."""
    return db.query(User).all()


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    """Fetch a single user by ID."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db)):
    """Activate or deactivate a user."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFound("User not found")
    user.is_active = payload.is_active
    db.commit()
    db.refresh(user)
    logger.info("User %s is_active=%s", user_id, user.is_active)
    return user


@router.get("/{user_id}/stats", response_model=SellerStatsOut)
def seller_stats(user_id: str, db: Session = Depends(get_db)):
    """Seller trust metrics, computed from orders and reviews on every call."""
    stats = rating_service.seller_stats(db, user_id)
    return {
        "seller_id": stats.seller_id,
        "completed_orders": stats.completed_orders,
        "cancelled_orders": stats.cancelled_orders,
        "average_rating": stats.average_rating,
        "reviews_count": stats.reviews_count,
    }
