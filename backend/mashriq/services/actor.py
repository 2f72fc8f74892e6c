"""Actor context carried into every core operation.

The role says what the caller *is* (a regular user, an admin, or a trusted
internal job). Whether a regular user is the buyer or the seller of a given
order is decided per order by matching ``actor_id``.
"""
import enum
from dataclasses import dataclass

from sqlalchemy.orm import Session

from mashriq.errors import Forbidden, NotFound
from mashriq.models.user import User, UserRole


class ActorRole(str, enum.Enum):
    user = "user"
    admin = "admin"
    system = "system"


class Party(str, enum.Enum):
    """The actor's relationship to a particular order."""

    buyer = "buyer"
    seller = "seller"
    admin = "admin"
    system = "system"
    none = "none"


@dataclass(frozen=True)
class Actor:
    actor_id: str
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.admin

    @property
    def is_system(self) -> bool:
        return self.role == ActorRole.system


SYSTEM_ACTOR = Actor(actor_id="system", role=ActorRole.system)


def party_of(actor: Actor, buyer_id: str, seller_id: str) -> Party:
    """Resolve how the actor relates to an order (buyer/seller win over admin)."""
    if actor.is_system:
        return Party.system
    if actor.actor_id == buyer_id:
        return Party.buyer
    if actor.actor_id == seller_id:
        return Party.seller
    if actor.is_admin:
        return Party.admin
    return Party.none


def resolve_actor(db: Session, actor_id: str) -> Actor:
    """User directory lookup: active users only, role taken from the directory."""
    user = db.query(User).filter(User.user_id == actor_id).first()
    if not user:
        raise NotFound(f"User {actor_id} not found")
    if not user.is_active:
        raise Forbidden(f"User {actor_id} is not active")
    role = ActorRole.admin if user.role == UserRole.admin else ActorRole.user
    return Actor(actor_id=user.user_id, role=role)
