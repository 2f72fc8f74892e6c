"""Inactivity sweep for an external scheduler (cron, worker, admin endpoint).

It has no special powers: every order it touches goes through the same
``transition`` call as any other caller, acting as the system actor.

- ``pending`` older than AUTO_CANCEL_PENDING_HOURS -> cancelled (seller never accepted)
- ``delivered`` for longer than AUTO_COMPLETE_DELIVERED_DAYS -> completed (buyer never answered)

``in_progress`` orders are not swept: the transition table has no
in_progress -> cancelled edge, so an overdue order is only reported.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from mashriq.config import settings
from mashriq.errors import DomainError, HoldNotFound
from mashriq.models.order import Order, OrderStatus
from mashriq.services import order_state_machine
from mashriq.services.actor import SYSTEM_ACTOR

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    cancelled: list[str] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)
    overdue: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


def _run(db: Session, report: SweepReport, order_ids: list[str], target: OrderStatus, payload: dict) -> list[str]:
    done = []
    for order_id in order_ids:
        try:
            order_state_machine.transition(db, order_id, SYSTEM_ACTOR, target, payload)
        except HoldNotFound:
            raise
        except DomainError as exc:
            # A buyer or seller acted first; the order is no longer eligible.
            logger.warning("Sweep skipped order %s: %s", order_id, exc)
            report.failed[order_id] = exc.kind
            continue
        done.append(order_id)
    return done


def sweep(db: Session, now: Optional[datetime] = None) -> SweepReport:
    now = now or datetime.now(timezone.utc)
    report = SweepReport()

    cancel_cutoff = now - timedelta(hours=settings.AUTO_CANCEL_PENDING_HOURS)
    stale_pending = [
        oid for (oid,) in db.query(Order.order_id).filter(
            Order.status == OrderStatus.pending,
            Order.created_at < cancel_cutoff,
        ).all()
    ]
    report.cancelled = _run(
        db, report, stale_pending, OrderStatus.cancelled,
        {"cancellation_reason": "Seller did not accept the order in time"},
    )

    complete_cutoff = now - timedelta(days=settings.AUTO_COMPLETE_DELIVERED_DAYS)
    stale_delivered = [
        oid for (oid,) in db.query(Order.order_id).filter(
            Order.status == OrderStatus.delivered,
            Order.delivered_at < complete_cutoff,
        ).all()
    ]
    report.completed = _run(db, report, stale_delivered, OrderStatus.completed, {})

    report.overdue = [
        oid for (oid,) in db.query(Order.order_id).filter(
            Order.status == OrderStatus.in_progress,
            Order.expected_delivery_date < now,
        ).all()
    ]
    for order_id in report.overdue:
        logger.warning("Order %s is past its expected delivery date", order_id)

    logger.info(
        "Sweep done: %d cancelled, %d completed, %d overdue, %d skipped",
        len(report.cancelled), len(report.completed), len(report.overdue), len(report.failed),
    )
    return report
