"""
Inventory status state machine (``jewelry_kernel.domain.status``).

Responsibility
--------------
Encodes the legal lifecycle graph of an inventory item as data and
accepts or rejects a requested status change.  Also owns the status
sets that gate generic field edits and soft deletes.

Architecture position
---------------------
**Kernel domain layer** -- pure values and functions.  ZERO I/O.  No
imports from ``db/``, ``models/``, ``services/`` or outer layers.  The
persistence of a transition (version bump, audit stamps) is done by
``services.inventory_service`` through ``services.versioned_writer``.

Invariants enforced
-------------------
* A status change is legal iff it is a self-loop or an edge of
  ``STATUS_TRANSITIONS``.
* Generic field edits are refused while status is in
  ``EDIT_LOCKED_STATUSES``; soft deletes while in
  ``DELETE_BLOCKED_STATUSES``.

State machine::

    available   -> reserved | sold | workshop | transferred | damaged
    reserved    -> available | sold
    sold        -> returned
    workshop    -> available | damaged
    transferred -> available
    damaged     -> available | returned
    returned    -> available | damaged
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from jewelry_kernel.exceptions import InvalidTransitionError


class InventoryStatus(str, Enum):
    """Operational state of an inventory item."""

    AVAILABLE = "available"
    RESERVED = "reserved"
    SOLD = "sold"
    WORKSHOP = "workshop"
    TRANSFERRED = "transferred"
    DAMAGED = "damaged"
    RETURNED = "returned"


INITIAL_STATUS = InventoryStatus.AVAILABLE

STATUS_TRANSITIONS: dict[InventoryStatus, frozenset[InventoryStatus]] = {
    InventoryStatus.AVAILABLE: frozenset({
        InventoryStatus.RESERVED,
        InventoryStatus.SOLD,
        InventoryStatus.WORKSHOP,
        InventoryStatus.TRANSFERRED,
        InventoryStatus.DAMAGED,
    }),
    InventoryStatus.RESERVED: frozenset({
        InventoryStatus.AVAILABLE,
        InventoryStatus.SOLD,
    }),
    InventoryStatus.SOLD: frozenset({
        InventoryStatus.RETURNED,
    }),
    InventoryStatus.WORKSHOP: frozenset({
        InventoryStatus.AVAILABLE,
        InventoryStatus.DAMAGED,
    }),
    # Transfer cancelled or item came back
    InventoryStatus.TRANSFERRED: frozenset({
        InventoryStatus.AVAILABLE,
    }),
    # Repaired, or sent back to the supplier
    InventoryStatus.DAMAGED: frozenset({
        InventoryStatus.AVAILABLE,
        InventoryStatus.RETURNED,
    }),
    InventoryStatus.RETURNED: frozenset({
        InventoryStatus.AVAILABLE,
        InventoryStatus.DAMAGED,
    }),
}

EDIT_LOCKED_STATUSES: frozenset[InventoryStatus] = frozenset({
    InventoryStatus.SOLD,
    InventoryStatus.TRANSFERRED,
})

DELETE_BLOCKED_STATUSES: frozenset[InventoryStatus] = frozenset({
    InventoryStatus.SOLD,
    InventoryStatus.RESERVED,
    InventoryStatus.WORKSHOP,
    InventoryStatus.TRANSFERRED,
})


def as_status(value: InventoryStatus | str) -> InventoryStatus:
    """Normalize a raw status string (as stored) to ``InventoryStatus``.

    Raises:
        ValueError: if ``value`` is not a known status.
    """
    if isinstance(value, InventoryStatus):
        return value
    return InventoryStatus(value)


def can_transition(
    current: InventoryStatus | str,
    requested: InventoryStatus | str,
) -> bool:
    """Return True iff ``current -> requested`` is a self-loop or a graph edge."""
    current = as_status(current)
    requested = as_status(requested)
    if current == requested:
        return True
    return requested in STATUS_TRANSITIONS.get(current, frozenset())


def allowed_targets(current: InventoryStatus | str) -> frozenset[InventoryStatus]:
    """Statuses reachable from ``current`` in one step (self-loop excluded)."""
    return STATUS_TRANSITIONS.get(as_status(current), frozenset())


def transition_table() -> dict[str, list[str]]:
    """Serializable view of the graph, for audit output and documentation."""
    return {
        source.value: sorted(target.value for target in targets)
        for source, targets in STATUS_TRANSITIONS.items()
    }


def is_edit_locked(status: InventoryStatus | str) -> bool:
    return as_status(status) in EDIT_LOCKED_STATUSES


def is_delete_blocked(status: InventoryStatus | str) -> bool:
    return as_status(status) in DELETE_BLOCKED_STATUSES


@dataclass(frozen=True)
class StatusChange:
    """Outcome of ``apply_transition``: what the conditional write must set.

    Contract: frozen.  ``description`` is the full new description value
    (the existing text plus the appended trail line, if any).
    """

    from_status: InventoryStatus
    to_status: InventoryStatus
    description: str | None

    @property
    def is_noop(self) -> bool:
        return self.from_status == self.to_status

    @property
    def message(self) -> str:
        if self.is_noop:
            return f"Item status unchanged ('{self.to_status.value}')"
        return (
            f"Item status changed from '{self.from_status.value}' "
            f"to '{self.to_status.value}'"
        )


def trail_line(
    from_status: InventoryStatus,
    to_status: InventoryStatus,
    reason: str,
) -> str:
    return f"{from_status.value} -> {to_status.value}: {reason}"


def apply_transition(
    current: InventoryStatus | str,
    requested: InventoryStatus | str,
    description: str | None = None,
    reason: str | None = None,
) -> StatusChange:
    """Validate a status change and compute the new description trail.

    Preconditions:
        - ``current`` is the persisted status of a live item.
    Postconditions:
        - Returns a ``StatusChange``; for a self-loop the description is
          returned untouched (no trail line is written).
    Raises:
        InvalidTransitionError: if the edge is not in ``STATUS_TRANSITIONS``.
    """
    current = as_status(current)
    requested = as_status(requested)

    if not can_transition(current, requested):
        raise InvalidTransitionError(current.value, requested.value)

    new_description = description
    reason = reason.strip() if reason else None
    if reason and current != requested:
        line = trail_line(current, requested, reason)
        new_description = f"{description}\n{line}" if description else line

    return StatusChange(
        from_status=current,
        to_status=requested,
        description=new_description,
    )
