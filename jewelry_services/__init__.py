"""
jewelry_services -- Package init and public API.

Responsibility:
    The transaction-owning boundary around ``jewelry_kernel``.  Callers
    (web handlers, scripts, jobs) use ``InventoryActions`` and receive
    ``ActionResult`` values; kernel exceptions never escape this layer.

Architecture position:
    Services -- outermost layer.

        jewelry_services/ -> jewelry_kernel/   (allowed)
        jewelry_kernel/   -> jewelry_services/ (FORBIDDEN)
"""

from jewelry_services.actor import ActorContext, require_actor
from jewelry_services.inventory_actions import CacheInvalidationHook, InventoryActions
from jewelry_services.results import ActionResult, BulkStatusResult

__all__ = [
    "ActionResult",
    "ActorContext",
    "BulkStatusResult",
    "CacheInvalidationHook",
    "InventoryActions",
    "require_actor",
]
