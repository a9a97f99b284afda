"""Actor attribution for audit and ticket-update records."""

from typing import Literal, Optional, Union

from pydantic import BaseModel

# Legacy sentinel still sent by some callers in place of a user id
SYSTEM_SENTINEL = "system"


class UserActor(BaseModel):
    """A real user performed the action."""

    kind: Literal["user"] = "user"
    user_id: str

    model_config = {"frozen": True}


class SystemActor(BaseModel):
    """The engine performed the action without direct user involvement."""

    kind: Literal["system"] = "system"

    model_config = {"frozen": True}


Actor = Union[UserActor, SystemActor]

SYSTEM = SystemActor()


def actor_for(user_id: Optional[str]) -> Actor:
    """Map an optional user id (or the 'system' sentinel) to an Actor."""
    if not user_id or user_id == SYSTEM_SENTINEL:
        return SYSTEM
    return UserActor(user_id=user_id)


def actor_user_id(actor: Actor) -> Optional[str]:
    """Stored form of an actor: the user id, or None for the system."""
    if isinstance(actor, UserActor):
        return actor.user_id
    return None
