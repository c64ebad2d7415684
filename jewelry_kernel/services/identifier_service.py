"""
IdentifierService -- collision-checked SKU and barcode allocation.

Responsibility:
    Produces SKUs and barcodes in the formats of
    ``jewelry_kernel.domain.identifiers`` and verifies them against the
    live items of the tenant.  Generation is probabilistic (time, random
    suffix, live-item count), so allocation is "generate, then verify or
    retry" with a bounded number of attempts.

Architecture position:
    Kernel > Services.  Read-only; the item service performs the insert.
    The partial unique indexes on inventory_items are the final arbiter
    when two creators race past the same pre-check.

Invariants enforced:
    - Uniqueness is scoped by tenant and ignores soft-deleted items.
    - A barcode retry advances the sequence component, so consecutive
      attempts never repeat a candidate within one allocation.

Failure modes:
    - DuplicateSkuError / DuplicateBarcodeError from ``ensure_unique`` for a
      taken client-supplied value, or from ``allocate_*`` once the attempt
      budget is exhausted.
"""

import random
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from jewelry_kernel.domain.clock import Clock
from jewelry_kernel.domain.identifiers import (
    DEFAULT_CATEGORY_CODE,
    DEFAULT_SHOP_CODE,
    code_prefix,
    format_barcode,
    format_sku,
    random_suffix,
)
from jewelry_kernel.exceptions import (
    DuplicateBarcodeError,
    DuplicateIdentifierError,
    DuplicateSkuError,
)
from jewelry_kernel.logging_config import get_logger
from jewelry_kernel.models.catalog import ProductCategory
from jewelry_kernel.models.inventory_item import InventoryItem
from jewelry_kernel.models.tenant import Tenant
from jewelry_kernel.services.base import BaseService

logger = get_logger("services.identifier")

DEFAULT_MAX_ATTEMPTS = 5

_DUPLICATE_ERRORS: dict[str, type[DuplicateIdentifierError]] = {
    "sku": DuplicateSkuError,
    "barcode": DuplicateBarcodeError,
}


class IdentifierService(BaseService):
    """
    Generates and verifies tenant-unique item identifiers.

    Contract:
        Time comes from the injected ``Clock`` (epoch milliseconds) and
        randomness from the injected ``random.Random``; with a
        DeterministicClock and a seeded Random the output is reproducible.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        super().__init__(session, clock)
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.rng = rng or random.Random()
        self.max_attempts = max_attempts

    # -- Generation -----------------------------------------------------------

    def shop_code(self, tenant_id: UUID) -> str:
        tenant = self.session.get(Tenant, tenant_id)
        return code_prefix(tenant.name if tenant else None, DEFAULT_SHOP_CODE)

    def category_code(self, tenant_id: UUID, category_id: UUID | None) -> str:
        if category_id is None:
            return DEFAULT_CATEGORY_CODE
        stmt = select(ProductCategory.name).where(
            ProductCategory.id == category_id,
            ProductCategory.tenant_id == tenant_id,
        )
        name = self.session.execute(stmt).scalar_one_or_none()
        return code_prefix(name, DEFAULT_CATEGORY_CODE)

    def generate_sku(self, tenant_id: UUID, category_id: UUID | None = None) -> str:
        """One SKU candidate: ``{SHOP}-{CAT}-{ms[-6:]}-{RAND4}``.  Not verified."""
        return format_sku(
            self.shop_code(tenant_id),
            self.category_code(tenant_id, category_id),
            self.clock.now_millis(),
            random_suffix(self.rng),
        )

    def live_item_count(self, tenant_id: UUID) -> int:
        stmt = select(func.count(InventoryItem.id)).where(
            InventoryItem.tenant_id == tenant_id,
            InventoryItem.deleted_at.is_(None),
        )
        return self.session.execute(stmt).scalar_one()

    def generate_barcode(self, tenant_id: UUID, sequence: int | None = None) -> str:
        """One barcode candidate; ``sequence`` defaults to live-item count + 1."""
        if sequence is None:
            sequence = self.live_item_count(tenant_id) + 1
        return format_barcode(tenant_id, self.clock.now_millis(), sequence)

    # -- Verification ---------------------------------------------------------

    def is_taken(
        self,
        tenant_id: UUID,
        field: str,
        value: str,
        exclude_item_id: UUID | None = None,
    ) -> bool:
        """True iff a live item of the tenant other than ``exclude_item_id`` holds ``value``."""
        if field not in _DUPLICATE_ERRORS:
            raise ValueError(f"Unknown identifier field: {field}")
        column = getattr(InventoryItem, field)
        stmt = select(InventoryItem.id).where(
            InventoryItem.tenant_id == tenant_id,
            column == value,
            InventoryItem.deleted_at.is_(None),
        )
        if exclude_item_id is not None:
            stmt = stmt.where(InventoryItem.id != exclude_item_id)
        return self.session.execute(stmt.limit(1)).first() is not None

    def ensure_unique(
        self,
        tenant_id: UUID,
        field: str,
        value: str,
        exclude_item_id: UUID | None = None,
    ) -> None:
        """
        Raises:
            DuplicateSkuError / DuplicateBarcodeError: If ``value`` is taken.
        """
        if self.is_taken(tenant_id, field, value, exclude_item_id):
            raise _DUPLICATE_ERRORS[field](tenant_id, value)

    # -- Allocation -----------------------------------------------------------

    def allocate_sku(self, tenant_id: UUID, category_id: UUID | None = None) -> str:
        """Generate SKUs until one is free, up to ``max_attempts`` times."""
        candidate = ""
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.generate_sku(tenant_id, category_id)
            if not self.is_taken(tenant_id, "sku", candidate):
                return candidate
            logger.warning(
                "identifier_collision",
                extra={"field": "sku", "candidate": candidate, "attempt": attempt},
            )
        logger.error(
            "identifier_allocation_exhausted",
            extra={"field": "sku", "attempts": self.max_attempts},
        )
        raise DuplicateSkuError(tenant_id, candidate)

    def allocate_barcode(self, tenant_id: UUID) -> str:
        """Generate barcodes until one is free; each retry bumps the sequence."""
        base_sequence = self.live_item_count(tenant_id) + 1
        candidate = ""
        for attempt in range(self.max_attempts):
            candidate = self.generate_barcode(tenant_id, base_sequence + attempt)
            if not self.is_taken(tenant_id, "barcode", candidate):
                return candidate
            logger.warning(
                "identifier_collision",
                extra={"field": "barcode", "candidate": candidate, "attempt": attempt + 1},
            )
        logger.error(
            "identifier_allocation_exhausted",
            extra={"field": "barcode", "attempts": self.max_attempts},
        )
        raise DuplicateBarcodeError(tenant_id, candidate)
