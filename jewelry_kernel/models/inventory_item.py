"""
Module: jewelry_kernel.models.inventory_item
Responsibility: ORM persistence for the inventory item aggregate root.
Architecture position: Kernel > Models.  May import from db/base.py and
    the pure enums in domain/.  MUST NOT import from services/ or outer
    layers.

Invariants enforced:
    - sku and barcode are unique per tenant among live rows
      (uq_inventory_items_tenant_sku / uq_inventory_items_tenant_barcode,
      partial on deleted_at IS NULL for SQLite and PostgreSQL).
    - version starts at 1 and is only ever advanced by the conditional
      write in services.versioned_writer.
    - stone_weight_carats starts at 0 and is only ever adjusted by
      services.stone_service.

Failure modes:
    - IntegrityError on a live duplicate sku/barcode that slipped past the
      service pre-check (race between two creators).  The service layer
      maps it to DuplicateSkuError / DuplicateBarcodeError.

Audit relevance:
    Every mutation stamps updated_at/updated_by_id; status changes append
    a "{from} -> {to}: {reason}" line to description when a reason is given.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from jewelry_kernel.db.base import (
    SoftDeleteMixin,
    TenantScopedMixin,
    TrackedBase,
    UUIDString,
)
from jewelry_kernel.domain.dtos import GoldColor, ItemType, OwnershipType
from jewelry_kernel.domain.status import INITIAL_STATUS, InventoryStatus

_LIVE = text("deleted_at IS NULL")


class InventoryItem(TenantScopedMixin, SoftDeleteMixin, TrackedBase):
    """
    A physical piece (or raw material / component) held by a shop.

    Contract:
        Mutated only through the kernel services.  Client-facing code
        never writes status, version or stone_weight_carats directly.

    Guarantees:
        - A new row is ``available`` at version 1 with zero stone weight.
    """

    __tablename__ = "inventory_items"

    __table_args__ = (
        Index(
            "uq_inventory_items_tenant_sku",
            "tenant_id",
            "sku",
            unique=True,
            sqlite_where=_LIVE,
            postgresql_where=_LIVE,
        ),
        Index(
            "uq_inventory_items_tenant_barcode",
            "tenant_id",
            "barcode",
            unique=True,
            sqlite_where=_LIVE,
            postgresql_where=_LIVE,
        ),
        Index("idx_inventory_items_tenant_status", "tenant_id", "status"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    sku: Mapped[str] = mapped_column(String(100), nullable=False)

    barcode: Mapped[str] = mapped_column(String(100), nullable=False)

    # Classification
    item_type: Mapped[ItemType] = mapped_column(
        String(20),
        nullable=False,
        default=ItemType.FINISHED.value,
    )

    ownership_type: Mapped[OwnershipType] = mapped_column(
        String(20),
        nullable=False,
        default=OwnershipType.OWNED.value,
    )

    gold_color: Mapped[GoldColor | None] = mapped_column(String(20), nullable=True)

    # Lifecycle
    status: Mapped[InventoryStatus] = mapped_column(
        String(20),
        nullable=False,
        default=INITIAL_STATUS.value,
    )

    # Physical
    weight_grams: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)

    stone_weight_carats: Mapped[Decimal] = mapped_column(
        Numeric(10, 3),
        nullable=False,
        default=Decimal("0"),
        server_default="0",
    )

    # Commercial
    purchase_price: Mapped[Decimal | None] = mapped_column(Numeric(15, 4), nullable=True)

    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)

    # Catalog references (tenant-scoped, checked by the reference validator)
    category_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("product_categories.id"), nullable=True
    )
    metal_type_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("metal_types.id"), nullable=True
    )
    metal_purity_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("metal_purities.id"), nullable=True
    )
    stone_type_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("stone_types.id"), nullable=True
    )
    size_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("product_sizes.id"), nullable=True
    )

    # Optimistic concurrency
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<InventoryItem {self.sku} ({self.status}) v{self.version}>"
