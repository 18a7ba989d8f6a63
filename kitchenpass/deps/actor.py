"""Dependency helpers for actor resolution."""

from dataclasses import dataclass

from fastapi import Header


@dataclass(frozen=True)
class Actor:
    """Opaque reference to the staff member making a request.

    Credentials are checked by the authentication service in front of this
    API; the core only records who did what.
    """

    actor_id: str
    display_name: str | None = None
    role: str | None = None


SYSTEM = Actor("system", "system", "system")


def get_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_name: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Actor:
    """Return the actor from ``X-Actor-*`` headers, falling back to ``system``."""
    if not x_actor_id:
        return SYSTEM
    return Actor(x_actor_id, x_actor_name, x_actor_role)
