"""
ActorContext -- the acting identity handed in by the surrounding application.

Authentication and session mechanics live outside this package; callers
resolve their session to an ``ActorContext`` (or ``None``) and pass it to
every ``InventoryActions`` operation.  The tenant is carried explicitly so
that every kernel call is tenant-scoped without ambient state.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from jewelry_kernel.exceptions import UnauthorizedError


@dataclass(frozen=True)
class ActorContext:
    """Who is acting, and for which shop."""

    actor_id: UUID | None
    tenant_id: UUID | None

    @property
    def is_authenticated(self) -> bool:
        return self.actor_id is not None and self.tenant_id is not None


def require_actor(actor: ActorContext | None) -> ActorContext:
    """
    Raises:
        UnauthorizedError: If there is no actor, or it lacks an id or tenant.
    """
    if actor is None or not actor.is_authenticated:
        raise UnauthorizedError()
    return actor
