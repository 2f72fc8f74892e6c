"""Shared router dependencies."""
from fastapi import Depends, Query
from sqlalchemy.orm import Session

from mashriq.database import get_db
from mashriq.services.actor import Actor, resolve_actor


def get_actor(
    actor_id: str = Query(..., description="ID of the user performing the action"),
    db: Session = Depends(get_db),
) -> Actor:
    """Resolve the calling user into an Actor (role comes from the user directory)."""
    return resolve_actor(db, actor_id)
