"""Maintenance routes — lets a scheduler trigger the inactivity sweep."""
import logging
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from mashriq.database import get_db
from mashriq.errors import Forbidden
from mashriq.routers.deps import get_actor
from mashriq.services import maintenance_service
from mashriq.services.actor import Actor

logger = logging.getLogger(__name__)
router = APIRouter()


class SweepReportOut(BaseModel):
    success: bool = True
    cancelled: list[str]
    completed: list[str]
    overdue: list[str]
    failed: dict[str, str]


@router.post("/sweep", response_model=SweepReportOut)
def run_sweep(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    """Auto-cancel stale pending orders and auto-complete stale deliveries."""
    if not actor.is_admin:
        raise Forbidden("Only admins may trigger the sweep")
    report = maintenance_service.sweep(db)
    logger.info("Sweep triggered by admin %s", actor.actor_id)
    return {
        "cancelled": report.cancelled,
        "completed": report.completed,
        "overdue": report.overdue,
        "failed": report.failed,
    }
