"""
Module: jewelry_kernel.models.item_stone
Responsibility: ORM persistence for stones set in an inventory item.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - weight_carats > 0 and stone_count >= 1 (validated by StoneInput
      before insert).
    - The parent's stone_weight_carats equals the sum of
      weight_carats * stone_count over its stones; services.stone_service
      maintains it in the same transaction as every insert/delete here.

Failure modes:
    - Rows are hard-deleted on detach; there is no soft delete.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from jewelry_kernel.db.base import TenantScopedMixin, TrackedBase, UUIDString


class ItemStone(TenantScopedMixin, TrackedBase):
    """One stone record (possibly several identical stones) on an item."""

    __tablename__ = "item_stones"

    __table_args__ = (
        Index("idx_item_stones_item", "item_id"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_items.id"),
        nullable=False,
    )

    stone_type_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("stone_types.id"),
        nullable=False,
    )

    weight_carats: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)

    stone_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Grading
    clarity: Mapped[str | None] = mapped_column(String(20), nullable=True)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    cut: Mapped[str | None] = mapped_column(String(20), nullable=True)
    position: Mapped[str | None] = mapped_column(String(50), nullable=True)

    estimated_value: Mapped[Decimal | None] = mapped_column(Numeric(15, 4), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def contribution(self) -> Decimal:
        """Carats this row adds to the parent's stone_weight_carats."""
        return self.weight_carats * self.stone_count

    def __repr__(self) -> str:
        return f"<ItemStone {self.weight_carats}ct x{self.stone_count} on {self.item_id}>"
