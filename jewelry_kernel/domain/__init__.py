"""
Pure domain layer.

This module contains pure data transfer objects and domain logic
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

Time and randomness enter only through injected ``Clock`` and
``random.Random`` instances.
"""

from jewelry_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from jewelry_kernel.domain.dtos import (
    CertificationInput,
    CertificationType,
    GoldColor,
    InventoryItemInfo,
    ItemCertificationInfo,
    ItemInput,
    ItemPatch,
    ItemReferences,
    ItemStoneInfo,
    ItemType,
    OwnershipType,
    StoneInput,
)
from jewelry_kernel.domain.identifiers import (
    code_prefix,
    format_barcode,
    format_sku,
    random_suffix,
)
from jewelry_kernel.domain.status import (
    DELETE_BLOCKED_STATUSES,
    EDIT_LOCKED_STATUSES,
    STATUS_TRANSITIONS,
    InventoryStatus,
    StatusChange,
    apply_transition,
    can_transition,
    transition_table,
)

__all__ = [
    # Clock
    "Clock",
    "SystemClock",
    "DeterministicClock",
    # Status machine
    "InventoryStatus",
    "STATUS_TRANSITIONS",
    "EDIT_LOCKED_STATUSES",
    "DELETE_BLOCKED_STATUSES",
    "StatusChange",
    "can_transition",
    "apply_transition",
    "transition_table",
    # Identifiers
    "code_prefix",
    "format_sku",
    "format_barcode",
    "random_suffix",
    # DTOs
    "ItemType",
    "OwnershipType",
    "GoldColor",
    "CertificationType",
    "ItemReferences",
    "ItemInput",
    "ItemPatch",
    "StoneInput",
    "CertificationInput",
    "InventoryItemInfo",
    "ItemStoneInfo",
    "ItemCertificationInfo",
]
